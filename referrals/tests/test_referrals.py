from django.core.cache import cache
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from referrals.models import Alert, Referral, User
from referrals.services.stats import KPI_CACHE_KEY

from .conftest import make_referral, make_user


class ReferralSubmissionTests(APITestCase):
    def setUp(self) -> None:
        self.clinician = make_user('clinician1', User.ROLE_CLINICIAN)
        self.other = make_user('clinician2', User.ROLE_CLINICIAN)
        self.recruiter = make_user('recruiter1', User.ROLE_RECRUITER)
        self.payload = {
            'candidateName': "Mary O'Neil-Smith",
            'candidateEmail': '  Mary.ONeil@Example.COM ',
            'candidatePhone': '+1 (555) 123-4567',
            'position': 'ICU Nurse',
            'department': 'Critical Care',
            'experience': '6 years',
            'notes': 'Great with <b>patients</b><script>alert(1)</script>',
            'skillTags': ['BLS', 'ACLS', 'BLS'],
            'socialLinks': {'linkedin': 'https://linkedin.com/in/mary'},
            'source': 'Conference',
        }

    def test_create_referral(self):
        self.client.force_authenticate(self.clinician)
        resp = self.client.post(reverse('referrals'), self.payload, format='json')
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        data = resp.data['data']
        self.assertEqual(data['status'], 'pending')
        self.assertEqual(data['candidateEmail'], 'mary.oneil@example.com')
        self.assertEqual(data['candidatePhone'], '+1(555)123-4567')
        self.assertEqual(data['skillTags'], ['BLS', 'ACLS'])
        self.assertNotIn('<script>', data['notes'])
        self.assertEqual(data['actionHistory'][0]['action'], 'submitted')
        self.assertNotIn('recruiterNotes', data)

        referral = Referral.objects.get(id=data['id'])
        self.assertEqual(referral.referrer, self.clinician)
        self.assertEqual(Alert.objects.filter(user=self.recruiter, type=Alert.TYPE_NEW_REFERRAL).count(), 1)

    def test_create_drops_cached_kpis_after_commit(self):
        cache.set(KPI_CACHE_KEY, {'stale': True})
        self.client.force_authenticate(self.clinician)
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            resp = self.client.post(reverse('referrals'), self.payload, format='json')
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(callbacks), 1)
        self.assertIsNone(cache.get(KPI_CACHE_KEY))

    def test_create_ignores_client_supplied_status(self):
        self.client.force_authenticate(self.clinician)
        resp = self.client.post(reverse('referrals'), {**self.payload, 'status': 'hired'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Referral.objects.get().status, 'pending')

    def test_create_validation_errors(self):
        self.client.force_authenticate(self.clinician)
        bad = {**self.payload, 'candidateName': 'R2-D2', 'candidateEmail': 'nope', 'candidatePhone': '12'}
        resp = self.client.post(reverse('referrals'), bad, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        fields = resp.data['error']['fields']
        self.assertIn('candidateName', fields)
        self.assertIn('candidateEmail', fields)
        self.assertIn('candidatePhone', fields)
        self.assertFalse(Referral.objects.exists())

    def test_list_only_own_referrals(self):
        make_referral(self.clinician)
        make_referral(self.other)
        self.client.force_authenticate(self.clinician)
        resp = self.client.get(reverse('referrals'))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(len(resp.data['data']), 1)

    def test_other_clinicians_referral_looks_missing(self):
        referral = make_referral(self.other)
        self.client.force_authenticate(self.clinician)
        resp = self.client.get(reverse('referral-detail', args=[referral.id]))
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data['error']['code'], 'not_found')

    def test_owner_can_edit_non_sensitive_fields(self):
        referral = make_referral(self.clinician)
        self.client.force_authenticate(self.clinician)
        resp = self.client.patch(
            reverse('referral-detail', args=[referral.id]), {'notes': 'Available in March'}, format='json',
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        referral.refresh_from_db()
        self.assertEqual(referral.notes, 'Available in March')
        self.assertEqual(referral.action_history[-1]['action'], 'updated')

    def test_owner_cannot_edit_recruiter_fields(self):
        referral = make_referral(self.clinician)
        self.client.force_authenticate(self.clinician)
        resp = self.client.patch(
            reverse('referral-detail', args=[referral.id]), {'recruiterNotes': 'strong hire'}, format='json',
        )
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(resp.data['error']['code'], 'access_denied')
        referral.refresh_from_db()
        self.assertIsNone(referral.recruiter_notes)

    def test_recruiter_edits_notes_and_next_steps(self):
        referral = make_referral(self.clinician)
        self.client.force_authenticate(self.recruiter)
        resp = self.client.patch(
            reverse('referral-detail', args=[referral.id]),
            {'recruiterNotes': 'Call back Friday', 'nextSteps': 'Phone screen'},
            format='json',
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['data']['recruiterNotes'], 'Call back Friday')
        self.assertEqual(resp.data['data']['nextSteps'], 'Phone screen')
        self.assertEqual(resp.data['data']['referrerName'], self.clinician.display_name)
        self.assertEqual(resp.data['data']['recruiterId'], self.recruiter.id)

    def test_patch_cannot_change_status(self):
        referral = make_referral(self.clinician)
        self.client.force_authenticate(self.recruiter)
        self.client.patch(reverse('referral-detail', args=[referral.id]), {'status': 'hired'}, format='json')
        referral.refresh_from_db()
        self.assertEqual(referral.status, 'pending')

    def test_candidate_profile_access(self):
        referral = make_referral(self.clinician)
        self.client.force_authenticate(self.recruiter)
        resp = self.client.get(reverse('candidate-profile', args=[referral.id]))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['data']['candidateName'], referral.candidate_name)

        self.client.force_authenticate(self.other)
        resp = self.client.get(reverse('candidate-profile', args=[referral.id]))
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_requires_authentication(self):
        resp = self.client.get(reverse('referrals'))
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
