"""
Integration tests for the matching and notification API.

Covers the request lifecycle end to end: creating a request for a
patient, fan-out to donor hospitals, the accept/reject protocol, inbox
handling and per-hospital visibility of the ranked snapshot.
"""

from datetime import timedelta

from django.core.cache import cache
from django.test import override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from ..models import Donor, DonorOrgan, Hospital, MatchingRequest, Notification, Patient, RankedCandidate, User


@override_settings(MATCHING={'REALTIME_ENABLED': False})
class MatchingAPITests(APITestCase):
    def setUp(self) -> None:
        cache.clear()
        self.hospitals = {
            hid: Hospital.objects.create(id=hid, name=f"Hospital {hid}")
            for hid in ('H1', 'H2', 'H3', 'H4')
        }
        self.staff = {
            hid: User.objects.create_user(
                username=f"staff_{hid.lower()}", password="P@ssw0rd1", role="hospital", hospital=h,
            )
            for hid, h in self.hospitals.items()
        }
        self.admin = User.objects.create_user(username="portal_admin", password="P@ssw0rd1", role="admin")

        self.patient = Patient.objects.create(
            id="P1", hospital=self.hospitals['H1'], full_name="Anna Schmidt",
            blood_type="O+", organ_needed="Kidney", urgency_level="Critical",
        )
        Patient.objects.create(
            id="P2", hospital=self.hospitals['H2'], full_name="Lena Novak",
            blood_type="AB+", organ_needed="Heart", urgency_level="Medium",
        )
        now = timezone.now()
        self._donor("D1", "H2", "O+", now - timedelta(days=2))
        self._donor("D2", "H3", "AB+", now - timedelta(days=2))
        self._donor("D3", "H3", "O-", now - timedelta(days=100))

        self.client = APIClient()

    def _donor(self, donor_id, hospital_id, blood_type, registered_at, organs=("Kidney",)):
        d = Donor.objects.create(
            id=donor_id, hospital=self.hospitals[hospital_id], full_name=f"Donor {donor_id}",
            blood_type=blood_type, is_active=True, signature_verified=True, registered_at=registered_at,
        )
        for organ in organs:
            DonorOrgan.objects.create(donor=d, organ=organ)
        return d

    def _as(self, user):
        self.client.force_authenticate(user=user)

    def _create_request(self):
        self._as(self.staff['H1'])
        resp = self.client.post(reverse('matching_create'), {'patientId': 'P1'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)
        return resp.data['requestId']

    def test_requires_authentication(self):
        resp = self.client.post(reverse('matching_create'), {'patientId': 'P1'}, format='json')
        self.assertIn(resp.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))
        self.assertFalse(resp.data['ok'])

    def test_admin_cannot_create_requests(self):
        self._as(self.admin)
        resp = self.client.post(reverse('matching_create'), {'patientId': 'P1'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_find_matches_previews_without_persisting(self):
        self._as(self.staff['H1'])
        resp = self.client.post(reverse('matching_find'), {'patientId': 'P1'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['totalMatches'], 2)
        self.assertEqual([m['donorId'] for m in resp.data['matches']], ['D1', 'D3'])
        self.assertEqual(resp.data['bestMatch']['donorId'], 'D1')
        self.assertEqual(MatchingRequest.objects.count(), 0)
        self.assertEqual(Notification.objects.count(), 0)

    def test_create_request_persists_snapshot_and_notifies_donor_hospitals(self):
        rid = self._create_request()

        req = MatchingRequest.objects.get(id=rid)
        self.assertTrue(rid.startswith('MATCH_REQ_'))
        self.assertEqual(req.status, MatchingRequest.STATUS_MATCHED)
        self.assertEqual(req.requesting_hospital_id, 'H1')
        ranked = list(RankedCandidate.objects.filter(request=req))
        self.assertEqual([(c.rank, c.donor_ref) for c in ranked], [(1, 'D1'), (2, 'D3')])
        self.assertEqual(req.best_score, ranked[0].score)

        notes = Notification.objects.filter(request=req, type=Notification.TYPE_ORGAN_MATCH)
        self.assertEqual(sorted(n.hospital_id for n in notes), ['H2', 'H3'])
        h3 = notes.get(hospital_id='H3')
        self.assertEqual([m['donorId'] for m in h3.payload['matches']], ['D3'])

    def test_create_request_without_candidates_is_closed(self):
        DonorOrgan.objects.filter(organ='Kidney').delete()
        self._as(self.staff['H1'])
        resp = self.client.post(reverse('matching_create'), {'patientId': 'P1'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data['status'], MatchingRequest.STATUS_NO_MATCHES)
        self.assertEqual(resp.data['notificationsSent'], 0)
        self.assertEqual(Notification.objects.count(), 0)

    def test_patient_of_another_hospital_is_not_found(self):
        self._as(self.staff['H1'])
        resp = self.client.post(reverse('matching_create'), {'patientId': 'P2'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(MatchingRequest.objects.count(), 0)

    def test_invalid_blood_type_override_is_rejected(self):
        self._as(self.staff['H1'])
        resp = self.client.post(reverse('matching_create'), {'patientId': 'P1', 'bloodType': 'Z+'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data['error']['code'], 'invalid')

    def test_accept_then_conflict(self):
        rid = self._create_request()

        self._as(self.staff['H2'])
        resp = self.client.post(reverse('matching_respond'),
                                {'requestId': rid, 'response': 'accept', 'donorId': 'D1', 'notes': '<b>ready</b>'},
                                format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.assertEqual(resp.data['status'], MatchingRequest.STATUS_ACCEPTED)

        req = MatchingRequest.objects.get(id=rid)
        self.assertEqual((req.matched_donor_id, req.matched_hospital_id), ('D1', 'H2'))
        self.assertEqual(req.notes, 'ready')
        self.assertIsNotNone(req.resolved_at)
        response = Notification.objects.get(hospital_id='H1', type=Notification.TYPE_MATCH_RESPONSE)
        self.assertEqual(response.title, 'Match Accepted!')
        self.assertTrue(Notification.objects.get(hospital_id='H2', request_id=rid).is_read)

        self._as(self.staff['H3'])
        resp = self.client.post(reverse('matching_respond'),
                                {'requestId': rid, 'response': 'accept', 'donorId': 'D3'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.data['error']['code'], 'conflict')
        req.refresh_from_db()
        self.assertEqual(req.matched_hospital_id, 'H2')
        self.assertEqual(Notification.objects.filter(type=Notification.TYPE_MATCH_RESPONSE).count(), 1)

    def test_reject(self):
        rid = self._create_request()
        self._as(self.staff['H3'])
        resp = self.client.post(reverse('matching_respond'), {'requestId': rid, 'response': 'reject'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['status'], MatchingRequest.STATUS_REJECTED)
        req = MatchingRequest.objects.get(id=rid)
        self.assertIsNone(req.matched_donor_id)
        self.assertIsNone(req.matched_hospital_id)
        self.assertEqual(
            Notification.objects.get(hospital_id='H1', type=Notification.TYPE_MATCH_RESPONSE).title,
            'Match Declined',
        )

    def test_accept_requires_donor(self):
        rid = self._create_request()
        self._as(self.staff['H2'])
        resp = self.client.post(reverse('matching_respond'), {'requestId': rid, 'response': 'accept'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_accept_with_other_hospitals_donor_is_forbidden(self):
        rid = self._create_request()
        self._as(self.staff['H2'])
        resp = self.client.post(reverse('matching_respond'),
                                {'requestId': rid, 'response': 'accept', 'donorId': 'D3'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(MatchingRequest.objects.get(id=rid).status, MatchingRequest.STATUS_MATCHED)

    def test_accept_with_donor_outside_ranked_snapshot_is_forbidden(self):
        # same hospital, but AB+ can never be ranked for an O+ recipient
        self._donor("D4", "H2", "AB+", timezone.now())
        rid = self._create_request()
        self._as(self.staff['H2'])
        resp = self.client.post(reverse('matching_respond'),
                                {'requestId': rid, 'response': 'accept', 'donorId': 'D4'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        req = MatchingRequest.objects.get(id=rid)
        self.assertEqual(req.status, MatchingRequest.STATUS_MATCHED)
        self.assertIsNone(req.matched_donor_id)

    def test_notes_are_stored_as_plain_text(self):
        rid = self._create_request()
        self._as(self.staff['H3'])
        notes = '<a href="http://x.test">call</a> <i>us</i><script>alert(1)</script>'
        resp = self.client.post(reverse('matching_respond'),
                                {'requestId': rid, 'response': 'reject', 'notes': notes}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        stored = MatchingRequest.objects.get(id=rid).notes
        self.assertNotIn('<', stored)
        self.assertTrue(stored.startswith('call us'))

    def test_organ_type_is_normalised_and_checked(self):
        self._as(self.staff['H1'])
        resp = self.client.post(reverse('matching_find'), {'patientId': 'P1', 'organType': ' kidney '}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['totalMatches'], 2)

        resp = self.client.post(reverse('matching_find'), {'patientId': 'P1', 'organType': 'Spleen'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data['error']['code'], 'invalid')

    def test_uninvolved_hospital_cannot_respond(self):
        rid = self._create_request()
        self._as(self.staff['H4'])
        resp = self.client.post(reverse('matching_respond'), {'requestId': rid, 'response': 'reject'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_respond_to_unknown_request(self):
        self._as(self.staff['H2'])
        resp = self.client.post(reverse('matching_respond'),
                                {'requestId': 'MATCH_REQ_nope', 'response': 'reject'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_request_detail_visibility(self):
        rid = self._create_request()
        url = reverse('matching_request_detail', args=[rid])

        self._as(self.staff['H1'])
        resp = self.client.get(url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(len(resp.data['data']['candidates']), 2)

        self._as(self.staff['H2'])
        resp = self.client.get(url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([c['donorId'] for c in resp.data['data']['candidates']], ['D1'])

        self._as(self.admin)
        resp = self.client.get(url)
        self.assertEqual(len(resp.data['data']['candidates']), 2)

        self._as(self.staff['H4'])
        resp = self.client.get(url)
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_requests_list_only_shows_own_outgoing(self):
        rid = self._create_request()
        self._as(self.staff['H1'])
        resp = self.client.get(reverse('matching_requests'))
        self.assertEqual([r['requestId'] for r in resp.data['data']], [rid])
        self.assertEqual(resp.data['pagination']['total'], 1)

        self._as(self.staff['H2'])
        resp = self.client.get(reverse('matching_requests'))
        self.assertEqual(resp.data['data'], [])

    def test_incoming_and_stats(self):
        rid = self._create_request()
        self._as(self.staff['H2'])
        resp = self.client.get(reverse('matching_incoming'))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        [item] = resp.data['incomingMatches']
        self.assertEqual(item['request']['requestId'], rid)
        self.assertEqual([m['donorId'] for m in item['matches']], ['D1'])

        resp = self.client.get(reverse('matching_stats'))
        self.assertEqual(resp.data['stats']['incoming'], 1)

        self._as(self.staff['H1'])
        resp = self.client.get(reverse('matching_stats'))
        self.assertEqual(resp.data['stats']['outgoing'], {'matched': 1})

    def test_notifications_list_and_mark_read(self):
        self._create_request()
        self._as(self.staff['H3'])
        resp = self.client.get(reverse('notifications'), {'unread': 'true'})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['unread'], 1)
        [n] = resp.data['data']
        self.assertEqual(n['type'], Notification.TYPE_ORGAN_MATCH)
        self.assertEqual(n['title'], 'Organ Match Found')

        resp = self.client.post(reverse('notifications_read'), {'notificationId': n['id']}, format='json')
        self.assertEqual(resp.data['updated'], 1)
        resp = self.client.get(reverse('notifications'), {'unread': 'true'})
        self.assertEqual(resp.data['data'], [])

        # all=true only touches the caller's own inbox
        self._as(self.staff['H2'])
        resp = self.client.post(reverse('notifications_read'), {'all': True}, format='json')
        self.assertEqual(resp.data['updated'], 1)
        self.assertEqual(Notification.objects.filter(is_read=False).count(), 0)

    def test_notifications_read_requires_target(self):
        self._as(self.staff['H2'])
        resp = self.client.post(reverse('notifications_read'), {}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
