from rest_framework import serializers


class UpdateStageSerializer(serializers.Serializer):
    candidateId = serializers.IntegerField(min_value=1, max_value=2**63 - 1)
    # membership in the stage list is checked by the transition service
    newStage = serializers.CharField(max_length=32)
