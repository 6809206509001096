"""User management endpoints."""
import json
from datetime import datetime
from attendee.models.attendance import DayAttendanceRecord
from attendee import db
from conftest import auth_headers, make_user


def body(response):
    return json.loads(response.data)


def test_list_users_admin_only(client, admin, member):
    assert client.get('/api/users/', headers=auth_headers(member)).status_code == 403

    response = client.get('/api/users/', headers=auth_headers(admin))
    assert response.status_code == 200
    data = body(response)['data']
    assert data['pagination']['totalRecords'] == 2


def test_list_users_filters(client, admin, member, inactive_member):
    headers = auth_headers(admin)

    inactive = body(client.get('/api/users/?status=inactive', headers=headers))['data']['users']
    assert [u['rfidTag'] for u in inactive] == ['T9']

    searched = body(client.get('/api/users/?search=max', headers=headers))['data']['users']
    assert [u['email'] for u in searched] == ['member@example.com']

    admins = body(client.get('/api/users/?role=admin', headers=headers))['data']['users']
    assert [u['name'] for u in admins] == ['Ada Admin']


def test_list_users_invalid_role(client, admin):
    response = client.get('/api/users/?role=wizard', headers=auth_headers(admin))
    assert response.status_code == 400


def test_create_user(client, admin):
    response = client.post('/api/users/', json={
        'name': 'Mo Mentor',
        'email': 'Mo@Example.com',
        'rfidTag': 'MO01',
        'password': 'password123',
        'role': 'mentor'
    }, headers=auth_headers(admin))

    assert response.status_code == 201
    user = body(response)['data']['user']
    assert user['email'] == 'mo@example.com'
    assert user['role'] == 'mentor'
    assert user['status'] == 'active'


def test_update_own_profile(client, member):
    response = client.put('/api/users/me', json={
        'phone': '+15550100',
        'bio': 'Builds rockets',
        'skills': ['avionics', 'cad']
    }, headers=auth_headers(member))

    assert response.status_code == 200
    user = body(response)['data']['user']
    assert user['skills'] == ['avionics', 'cad']
    assert user['bio'] == 'Builds rockets'


def test_profile_email_conflict(client, admin, member):
    response = client.put('/api/users/me', json={'email': 'admin@example.com'}, headers=auth_headers(member))
    assert response.status_code == 409


def test_get_user_self_or_admin(client, admin, member, mentor):
    assert client.get(f'/api/users/{member.id}', headers=auth_headers(member)).status_code == 200
    assert client.get(f'/api/users/{member.id}', headers=auth_headers(admin)).status_code == 200
    assert client.get(f'/api/users/{member.id}', headers=auth_headers(mentor)).status_code == 403
    assert client.get('/api/users/9999', headers=auth_headers(admin)).status_code == 404


def test_admin_update_user(client, admin, member):
    response = client.put(f'/api/users/{member.id}', json={
        'rfidTag': 'T1-NEW',
        'role': 'mentor'
    }, headers=auth_headers(admin))

    assert response.status_code == 200
    user = body(response)['data']['user']
    assert user['rfidTag'] == 'T1-NEW'
    assert user['role'] == 'mentor'


def test_cannot_delete_self(client, admin):
    response = client.delete(f'/api/users/{admin.id}', headers=auth_headers(admin))
    assert response.status_code == 400


def test_delete_user_removes_attendance(client, admin, member):
    record = DayAttendanceRecord.start(member.id, datetime(2024, 3, 1, 9))
    db.session.add(record)
    db.session.commit()

    response = client.delete(f'/api/users/{member.id}', headers=auth_headers(admin))

    assert response.status_code == 200
    assert body(response)['data']['deletedUser']['email'] == 'member@example.com'
    assert DayAttendanceRecord.query.count() == 0


def test_status_toggle(client, admin, member):
    response = client.put(f'/api/users/{member.id}/status', json={'status': 'inactive'},
                          headers=auth_headers(admin))
    assert response.status_code == 200
    assert body(response)['message'] == 'User deactivated successfully'

    response = client.put(f'/api/users/{admin.id}/status', json={'status': 'inactive'},
                          headers=auth_headers(admin))
    assert response.status_code == 400


def test_stats_summary(client, admin, mentor, member, inactive_member):
    response = client.get('/api/users/stats/summary', headers=auth_headers(mentor))

    assert response.status_code == 200
    stats = body(response)['data']
    assert stats['totalUsers'] == 4
    assert stats['inactiveUsers'] == 1
    assert stats['usersByRole'] == {'admin': 1, 'mentor': 1, 'member': 2}


def test_stats_summary_forbidden_for_members(client, app):
    member = make_user('Plain Member', 'PM01', 'plain@example.com')
    response = client.get('/api/users/stats/summary', headers=auth_headers(member))
    assert response.status_code == 403
