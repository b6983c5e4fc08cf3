import logging
from datetime import timedelta

import pytest
from django.core.cache import cache
from django.db import transaction
from django.urls import reverse
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from referrals.models import Alert, Referral
from referrals.services import transitions
from referrals.services.stats import KPI_CACHE_KEY

from .conftest import client_for, make_referral

pytestmark = pytest.mark.django_db


@pytest.fixture
def published(monkeypatch):
    events = []
    monkeypatch.setattr(transitions, 'publish', lambda event: events.append(event) or True)
    return events


@pytest.fixture
def move(django_capture_on_commit_callbacks):
    def _move(user, candidate_id, new_stage):
        with django_capture_on_commit_callbacks(execute=True):
            return client_for(user).post(
                reverse('pipeline-update-stage'), {'candidateId': candidate_id, 'newStage': new_stage}, format='json',
            )
    return _move


def test_scenario_b_move_updates_status_and_timestamp(clinician, recruiter, published, move):
    r = make_referral(clinician, status='contacted')
    before = timezone.now() - timedelta(hours=2)
    Referral.objects.filter(id=r.id).update(updated_at=before)

    resp = move(recruiter, r.id, 'interviewing')

    assert resp.status_code == 200
    assert resp.data['data']['status'] == 'interviewing'
    assert parse_datetime(resp.data['data']['updatedAt']) > before
    r.refresh_from_db()
    assert r.status == 'interviewing'
    assert r.updated_at > before
    assert r.action_history[-1]['action'] == 'stage_change'


def test_scenario_d_unknown_candidate_is_404_and_nothing_written(clinician, recruiter, published, move):
    r = make_referral(clinician, status='contacted')
    snapshot = Referral.objects.values().get(id=r.id)

    resp = move(recruiter, 99999, 'interviewing')

    assert resp.status_code == 404
    assert resp.data['error']['code'] == 'not_found'
    assert Referral.objects.values().get(id=r.id) == snapshot
    assert not Alert.objects.exists()
    assert published == []


@pytest.mark.parametrize('target', ['pending', 'contacted', 'interviewing', 'hired', 'rejected'])
def test_pipeline_staff_can_move_to_any_stage(clinician, recruiter, leader, published, move, target):
    r = make_referral(clinician, status='hired' if target != 'hired' else 'rejected')
    for user in (recruiter, leader):
        resp = move(user, r.id, target)
        assert resp.status_code == 200
        assert Referral.objects.get(id=r.id).status == target


def test_owner_clinician_cannot_move_stage(clinician, published, move):
    r = make_referral(clinician, status='pending')

    resp = move(clinician, r.id, 'hired')

    assert resp.status_code == 403
    assert resp.data['error']['code'] == 'access_denied'
    assert set(resp.data['error']['requiredRoles']) == {'recruiter', 'leadership'}
    assert Referral.objects.get(id=r.id).status == 'pending'


def test_anonymous_cannot_move_stage(clinician):
    r = make_referral(clinician)
    resp = client_for().post(reverse('pipeline-update-stage'), {'candidateId': r.id, 'newStage': 'hired'}, format='json')
    assert resp.status_code == 401


@pytest.mark.parametrize('target', ['archived', '', 'HIRED', None])
def test_invalid_target_stage_is_rejected(clinician, recruiter, published, move, target):
    r = make_referral(clinician, status='pending')

    resp = move(recruiter, r.id, target)

    assert resp.status_code == 400
    assert resp.data['error']['code'] == 'validation_error'
    assert 'newStage' in resp.data['error']['fields']
    assert Referral.objects.get(id=r.id).status == 'pending'


def test_missing_candidate_id_is_validation_error(recruiter):
    resp = client_for(recruiter).post(reverse('pipeline-update-stage'), {'newStage': 'hired'}, format='json')
    assert resp.status_code == 400
    assert 'candidateId' in resp.data['error']['fields']


def test_backward_move_is_allowed(clinician, recruiter, published, move):
    r = make_referral(clinician, status='hired')
    assert move(recruiter, r.id, 'pending').status_code == 200
    assert Referral.objects.get(id=r.id).status == 'pending'


def test_side_effects_alert_cache_and_broadcast(clinician, recruiter, published, move):
    r = make_referral(clinician, status='pending')
    cache.set(KPI_CACHE_KEY, {'stale': True})

    move(recruiter, r.id, 'contacted')

    alert = Alert.objects.get(user=clinician, type=Alert.TYPE_PIPELINE_UPDATE)
    assert alert.type == Alert.TYPE_PIPELINE_UPDATE
    assert alert.related_referral_id == r.id
    assert cache.get(KPI_CACHE_KEY) is None
    assert published == [{
        'type': 'pipeline.updated',
        'referralId': r.id,
        'from': 'pending',
        'to': 'contacted',
        'ts': published[0]['ts'],
    }]


def test_same_stage_move_records_history_without_alert(clinician, recruiter, published, move):
    r = make_referral(clinician, status='contacted')
    move(recruiter, r.id, 'contacted')
    r.refresh_from_db()
    assert len(r.action_history) == 1
    assert not Alert.objects.exists()


def test_board_reflects_move(clinician, recruiter, published, move):
    r = make_referral(clinician, status='pending')
    move(recruiter, r.id, 'hired')
    board = client_for(recruiter).get(reverse('pipeline')).data
    assert board['pipeline']['hired']['count'] == 1
    assert board['pipeline']['pending']['count'] == 0


def test_move_records_acting_recruiter(clinician, recruiter, published, move):
    r = make_referral(clinician)
    resp = move(recruiter, r.id, 'contacted')
    assert resp.data['data']['recruiterId'] == recruiter.id
    assert Referral.objects.get(id=r.id).recruiter_id == recruiter.id


def test_side_effects_wait_for_commit(clinician, recruiter, published, django_capture_on_commit_callbacks):
    r = make_referral(clinician)
    cache.set(KPI_CACHE_KEY, {'stale': True})

    with django_capture_on_commit_callbacks(execute=True), pytest.raises(RuntimeError):
        with transaction.atomic():
            transitions.update_stage(recruiter, r.id, 'contacted')
            raise RuntimeError('rolled back')

    assert published == []
    assert cache.get(KPI_CACHE_KEY) == {'stale': True}
    assert Referral.objects.get(id=r.id).status == 'pending'


def test_broadcast_failure_after_commit_still_returns_saved_referral(clinician, recruiter, monkeypatch, move, caplog):
    def broken(event):
        raise ConnectionError('redis down')

    monkeypatch.setattr(transitions, 'publish', broken)
    r = make_referral(clinician, status='pending')
    cache.set(KPI_CACHE_KEY, {'stale': True})

    with caplog.at_level(logging.ERROR, logger='referrals'):
        resp = move(recruiter, r.id, 'interviewing')

    assert resp.status_code == 200
    assert resp.data['ok'] is True
    assert resp.data['data']['status'] == 'interviewing'
    assert Referral.objects.get(id=r.id).status == 'interviewing'
    assert cache.get(KPI_CACHE_KEY) is None
    assert any(rec.getMessage() == 'pipeline broadcast failed' and rec.exc_info for rec in caplog.records)


def test_candidate_id_beyond_bigint_is_validation_error(recruiter):
    resp = client_for(recruiter).post(
        reverse('pipeline-update-stage'), {'candidateId': 2**63, 'newStage': 'hired'}, format='json',
    )
    assert resp.status_code == 400
    assert 'candidateId' in resp.data['error']['fields']
