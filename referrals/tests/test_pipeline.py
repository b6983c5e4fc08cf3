import json
from datetime import timedelta

import pytest
from django.urls import reverse
from django.utils import timezone

from referrals.models import Referral
from referrals.services.pipeline import (
    STAGES, PipelineFilters, build_pipeline, filters_from_params, parse_day, status_breakdown,
)

from .conftest import client_for, make_referral, make_user

pytestmark = pytest.mark.django_db


def test_scenario_a_counts_per_stage(clinician):
    make_referral(clinician, status='pending')
    make_referral(clinician, status='pending')
    make_referral(clinician, status='hired')

    result = build_pipeline(PipelineFilters())

    assert result['total'] == 3
    assert result['pipeline']['pending']['count'] == 2
    assert result['pipeline']['hired']['count'] == 1
    for stage in ('contacted', 'interviewing', 'rejected'):
        assert result['pipeline'][stage] == {'stage': stage, 'count': 0, 'candidates': []}


def test_all_stages_present_on_empty_store():
    result = build_pipeline(PipelineFilters())
    assert result['total'] == 0
    assert list(result['pipeline']) == list(STAGES)


def test_counts_sum_to_total_and_each_candidate_once(clinician):
    for i, stage in enumerate(STAGES * 2):
        make_referral(clinician, status=stage, candidate_name=f'Person {chr(65 + i)}',
                      department='ICU' if i % 2 else 'ER')

    for params in ({}, {'department': 'ICU'}, {'role': 'nurse', 'sortBy': 'name', 'sortDirection': 'asc'}):
        result = build_pipeline(filters_from_params(params))
        buckets = result['pipeline'].values()
        assert sum(b['count'] for b in buckets) == result['total']
        ids = [c['id'] for b in buckets for c in b['candidates']]
        assert len(ids) == len(set(ids)) == result['total']


def test_unknown_status_is_bucketed_as_pending(clinician):
    r = make_referral(clinician)
    # written behind the application's back
    Referral.objects.filter(id=r.id).update(status='on_hold')

    result = build_pipeline(PipelineFilters())

    assert result['total'] == 1
    assert result['pipeline']['pending']['count'] == 1
    assert result['pipeline']['pending']['candidates'][0]['status'] == 'pending'
    assert status_breakdown(PipelineFilters())['statusBreakdown'][0] == {
        'status': 'pending', 'count': 1, 'percentage': 100.0,
    }


def test_filters_are_conjunctive(clinician):
    make_referral(clinician, position='ICU Nurse', department='Critical Care', source='LinkedIn')
    make_referral(clinician, position='ICU Nurse', department='Nursing', source='LinkedIn')
    make_referral(clinician, position='Pharmacist', department='Critical Care', source='Job board')

    result = build_pipeline(filters_from_params({'role': 'icu', 'department': 'Critical Care'}))
    assert result['total'] == 1

    result = build_pipeline(filters_from_params({'source': 'linked', 'department': 'all', 'role': ''}))
    assert result['total'] == 2


def test_date_bounds_are_inclusive_days(clinician):
    today = timezone.localdate()
    yesterday = today - timedelta(days=1)
    make_referral(clinician, created_at=timezone.now() - timedelta(days=3))
    make_referral(clinician)

    params = {'fromDate': yesterday.isoformat(), 'toDate': today.isoformat()}
    assert build_pipeline(filters_from_params(params))['total'] == 1
    assert build_pipeline(filters_from_params({'toDate': today.isoformat()}))['total'] == 2


def test_unparseable_dates_and_sort_values_are_ignored(clinician):
    make_referral(clinician)
    filters = filters_from_params({'fromDate': 'not-a-date', 'toDate': '2024-02-30', 'sortBy': 'salary'})
    assert filters.from_date is None and filters.to_date is None
    assert filters.sort_by == 'lastActivity'
    assert build_pipeline(filters)['total'] == 1


def test_parse_day_accepts_datetimes():
    assert parse_day('2024-03-05T10:00:00Z').isoformat() == '2024-03-05'
    assert parse_day('') is None
    assert parse_day(None) is None


def test_sorting_by_name_with_stable_ties(clinician):
    make_referral(clinician, candidate_name='Zoe Adams')
    b1 = make_referral(clinician, candidate_name='Amy Brown')
    b2 = make_referral(clinician, candidate_name='Amy Brown')

    asc = build_pipeline(filters_from_params({'sortBy': 'name', 'sortOrder': 'asc'}))
    names = [(c['name'], c['id']) for c in asc['pipeline']['pending']['candidates']]
    assert names[0] == ('Amy Brown', b1.id)
    assert names[1] == ('Amy Brown', b2.id)
    assert names[2][0] == 'Zoe Adams'


def test_board_is_idempotent(clinician, recruiter):
    for stage in STAGES:
        make_referral(clinician, status=stage)
    client = client_for(recruiter)
    url = reverse('pipeline') + '?sortBy=role&sortDirection=asc'
    first = client.get(url)
    second = client.get(url)
    assert first.status_code == 200
    assert json.dumps(first.data, sort_keys=True) == json.dumps(second.data, sort_keys=True)


def test_board_requires_pipeline_role(clinician, leader):
    resp = client_for(clinician).get(reverse('pipeline'))
    assert resp.status_code == 403
    assert resp.data['error']['code'] == 'access_denied'
    assert resp.data['error']['requiredRoles'] == ['recruiter', 'leadership']

    assert client_for(leader).get(reverse('pipeline')).status_code == 200


def test_board_requires_authentication():
    resp = client_for().get(reverse('pipeline'))
    assert resp.status_code == 401
    assert resp.data['error']['code'] == 'not_authenticated'


def test_status_snapshot_percentages(clinician, recruiter):
    make_referral(clinician, status='hired')
    make_referral(clinician, status='pending')
    make_referral(clinician, status='pending')
    make_referral(clinician, status='rejected')

    resp = client_for(recruiter).get(reverse('pipeline-snapshot'))

    assert resp.status_code == 200
    assert resp.data['total'] == 4
    by_status = {row['status']: row for row in resp.data['statusBreakdown']}
    assert by_status['pending']['percentage'] == 50.0
    assert by_status['hired']['percentage'] == 25.0
    assert by_status['contacted'] == {'status': 'contacted', 'count': 0, 'percentage': 0.0}


def test_status_snapshot_empty_store_has_zero_percentages():
    result = status_breakdown(PipelineFilters())
    assert result['total'] == 0
    assert all(row['percentage'] == 0 for row in result['statusBreakdown'])


def test_status_snapshot_filters_by_recruiter(clinician, recruiter):
    other = make_user('recruiter2', 'recruiter')
    make_referral(clinician, status='hired', recruiter=recruiter)
    make_referral(clinician, status='contacted', recruiter=recruiter)
    make_referral(clinician, status='rejected', recruiter=other)
    make_referral(clinician, status='pending')

    resp = client_for(recruiter).get(reverse('pipeline-snapshot'), {'recruiter': recruiter.id})

    assert resp.data['total'] == 2
    by_status = {row['status']: row['count'] for row in resp.data['statusBreakdown']}
    assert by_status == {'pending': 0, 'contacted': 1, 'interviewing': 0, 'hired': 1, 'rejected': 0}

    board = client_for(recruiter).get(reverse('pipeline'), {'recruiter': other.id}).data
    assert board['total'] == 1
    assert board['pipeline']['rejected']['count'] == 1


@pytest.mark.parametrize('value', ['all', 'abc', '', '-3'])
def test_unusable_recruiter_filter_is_ignored(clinician, recruiter, value):
    make_referral(clinician, recruiter=recruiter)
    make_referral(clinician)

    assert filters_from_params({'recruiter': value}).recruiter_id is None
    assert status_breakdown(filters_from_params({'recruiter': value}))['total'] == 2
