import bleach
from rest_framework import serializers

NAME_PATTERN = r"^[a-zA-Z\s\-']+$"
PHONE_PATTERN = r'^\+?[\d\-\(\)\s]{10,20}$'


def _clean(v):
    return bleach.clean((v or '').strip(), strip=True) or None


class ReferralFieldsMixin(serializers.Serializer):
    candidatePhone = serializers.RegexField(
        PHONE_PATTERN, source='candidate_phone', required=False, allow_null=True,
        error_messages={'invalid': 'Invalid phone number format'},
    )
    department = serializers.CharField(min_length=2, max_length=50, required=False, allow_null=True)
    experience = serializers.CharField(max_length=1000, required=False, allow_blank=True, allow_null=True)
    notes = serializers.CharField(max_length=2000, required=False, allow_blank=True, allow_null=True)
    resumeUrl = serializers.URLField(source='resume_url', max_length=512, required=False, allow_null=True)
    skillTags = serializers.ListField(
        source='skill_tags', child=serializers.CharField(max_length=50), required=False, max_length=30,
    )
    socialLinks = serializers.DictField(source='social_links', child=serializers.URLField(), required=False)
    source = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)

    def validate_candidatePhone(self, v):
        return ''.join(v.split()) if v else None

    def validate_department(self, v):
        return _clean(v)

    def validate_experience(self, v):
        return _clean(v)

    def validate_notes(self, v):
        return _clean(v)

    def validate_source(self, v):
        return _clean(v)

    def validate_skillTags(self, v):
        tags = []
        for tag in v:
            tag = bleach.clean(tag.strip(), strip=True)
            if tag and tag not in tags:
                tags.append(tag)
        return tags


class ReferralCreateSerializer(ReferralFieldsMixin):
    candidateName = serializers.RegexField(
        NAME_PATTERN, source='candidate_name', min_length=2, max_length=100,
        error_messages={'invalid': "Name can only contain letters, spaces, hyphens, and apostrophes"},
    )
    candidateEmail = serializers.EmailField(source='candidate_email', max_length=255)
    position = serializers.CharField(min_length=2, max_length=100)

    def validate_candidateEmail(self, v):
        return v.lower().strip()

    def validate_position(self, v):
        return bleach.clean(v.strip(), strip=True)


class ReferralUpdateSerializer(ReferralFieldsMixin):
    position = serializers.CharField(min_length=2, max_length=100, required=False)
    recruiterNotes = serializers.CharField(
        source='recruiter_notes', max_length=2000, required=False, allow_blank=True, allow_null=True,
    )
    nextSteps = serializers.CharField(
        source='next_steps', max_length=1000, required=False, allow_blank=True, allow_null=True,
    )

    def validate_position(self, v):
        return bleach.clean(v.strip(), strip=True)

    def validate_recruiterNotes(self, v):
        return _clean(v)

    def validate_nextSteps(self, v):
        return _clean(v)
