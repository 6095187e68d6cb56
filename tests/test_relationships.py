import pytest

from app.core.exceptions import ForbiddenException, NotFoundException
from app.models.relationship import Relationship
from app.schemas.relationship_schemas import RelationshipUpdate
from app.services.relationship_service import RelationshipService


@pytest.fixture
def family(agency_a, child_a, make_person, make_relationship):
    """Case subject with one recorded grandmother"""
    grandmother = make_person(agency_a, first_name="Rosa", last_name="Lopez")
    edge = make_relationship(agency_a, child_a, grandmother, relationship_type="relative")
    return grandmother, edge


class TestCreateRelationship:
    """Tests for POST /api/relationships"""

    def test_relate_existing_persons(self, client, db_session, worker_a_headers, agency_a, child_a, make_person):
        """Direct entry relates two existing persons"""
        uncle = make_person(agency_a, first_name="Tomas", last_name="Lopez")

        response = client.post(
            "/api/relationships",
            headers=worker_a_headers,
            json={"person_id": child_a.id, "related_person_id": uncle.id, "relationship_type": "uncle"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["counterpart_id"] == str(uncle.id)
        assert data["display_name"] == "Tomas Lopez"
        assert data["keystone_display_name"] == "Maya Lopez"
        assert data["relationship_type"] == "uncle"
        assert db_session.query(Relationship).count() == 1

    def test_relating_again_returns_same_edge(self, client, db_session, worker_a_headers, child_a, family):
        """Relating the same pair again returns the same edge"""
        grandmother, edge = family
        edge_id = edge.id

        response = client.post(
            "/api/relationships",
            headers=worker_a_headers,
            json={"person_id": grandmother.id, "related_person_id": child_a.id},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["relationship_id"] == str(edge_id)
        # Oriented from the requested person
        assert data["display_name"] == "Maya Lopez"
        assert db_session.query(Relationship).count() == 1

    def test_related_person_in_other_agency(self, client, worker_a_headers, agency_b, child_a, make_person):
        """Related person may belong to another agency"""
        relative = make_person(agency_b, first_name="Carla")

        response = client.post(
            "/api/relationships",
            headers=worker_a_headers,
            json={"person_id": child_a.id, "related_person_id": relative.id},
        )

        assert response.status_code == 201
        assert response.json()["display_name"] == "Carla"

    def test_missing_related_person(self, client, worker_a_headers, child_a):
        """Unknown related person is a 404"""
        response = client.post(
            "/api/relationships",
            headers=worker_a_headers,
            json={"person_id": child_a.id, "related_person_id": 8080},
        )
        assert response.status_code == 404

    def test_retired_related_person(self, client, worker_a_headers, agency_a, child_a, make_person):
        """Retired related person is a 403"""
        retired = make_person(agency_a, first_name="Closed", retired=True)

        response = client.post(
            "/api/relationships",
            headers=worker_a_headers,
            json={"person_id": child_a.id, "related_person_id": retired.id},
        )

        assert response.status_code == 403
        assert response.json()["reason"] == "retired_record"

    def test_self_relationship_rejected(self, client, worker_a_headers, child_a):
        """A person cannot be related to itself"""
        response = client.post(
            "/api/relationships",
            headers=worker_a_headers,
            json={"person_id": child_a.id, "related_person_id": child_a.id},
        )

        assert response.status_code == 400
        assert response.json()["fields"] == ["related_person_id"]

    def test_other_agency_subject_forbidden(self, client, worker_b_headers, agency_b, child_a, make_person):
        """Another agency's subject is a 403"""
        relative = make_person(agency_b, first_name="Carla")

        response = client.post(
            "/api/relationships",
            headers=worker_b_headers,
            json={"person_id": child_a.id, "related_person_id": relative.id},
        )

        assert response.status_code == 403
        assert response.json()["reason"] == "tenant_mismatch"


class TestUpdateRelationship:
    def test_update_type(self, db_session, worker_a, family):
        """Relationship type can be changed"""
        _, edge = family

        updated = RelationshipService(db_session).update_relationship(
            edge.id, RelationshipUpdate(relationship_type="grandmother"), worker_a
        )

        assert updated.relationship_type == "grandmother"
        assert updated.is_restricted is False

    def test_contact_logs_deduplicated(self, db_session, worker_a, family):
        """Contact-log links are stored once each"""
        _, edge = family

        updated = RelationshipService(db_session).update_relationship(
            edge.id,
            RelationshipUpdate(contact_log_ids=["log-2", "log-1", "log-2"]),
            worker_a,
        )

        assert updated.contact_log_ids == ["log-2", "log-1"]
        assert updated.relationship_type == "relative"

    def test_missing_relationship(self, db_session, worker_a):
        """Unknown relationship is NotFound"""
        with pytest.raises(NotFoundException):
            RelationshipService(db_session).update_relationship(
                12345, RelationshipUpdate(is_restricted=True), worker_a
            )

    def test_other_agency_forbidden(self, db_session, worker_b, family):
        """Another agency's relationship is Forbidden"""
        _, edge = family

        with pytest.raises(ForbiddenException) as exc_info:
            RelationshipService(db_session).update_relationship(
                edge.id, RelationshipUpdate(is_restricted=True), worker_b
            )
        assert exc_info.value.reason == "tenant_mismatch"

    def test_restricted_actor_forbidden(self, db_session, visitor_a, family):
        """Restricted role cannot update relationships"""
        _, edge = family

        with pytest.raises(ForbiddenException) as exc_info:
            RelationshipService(db_session).update_relationship(
                edge.id, RelationshipUpdate(relationship_type="aunt"), visitor_a
            )
        assert exc_info.value.reason == "role_forbidden"


class TestUpdateRelationshipRoutes:
    def test_patch_relationship(self, client, worker_a_headers, child_a, family):
        """Patch route returns the updated record"""
        grandmother, edge = family

        response = client.patch(
            f"/api/relationships/{edge.id}",
            headers=worker_a_headers,
            json={"relationship_type": "grandmother", "contact_log_ids": ["c-1", "c-1"]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["relationship_type"] == "grandmother"
        assert data["contact_log_ids"] == ["c-1"]
        assert data["source_person_id"] == child_a.id
        assert data["destination_person_id"] == grandmother.id

    def test_restricting_hides_edge_from_unassigned_workers(
        self, client, worker_a_headers, agency_a, child_a, family
    ):
        """Restricting an edge hides it from unassigned workers"""
        from tests.conftest import headers_for

        _, edge = family
        colleague_headers = headers_for("worker-c", "tenant_worker", agency_a.id)

        response = client.patch(
            f"/api/relationships/{edge.id}", headers=worker_a_headers, json={"is_restricted": True}
        )
        assert response.status_code == 200

        assigned = client.get(f"/api/persons/{child_a.id}/relationships", headers=worker_a_headers)
        unassigned = client.get(f"/api/persons/{child_a.id}/relationships", headers=colleague_headers)

        assert len(assigned.json()) == 1
        assert unassigned.json() == []

    def test_patch_missing_relationship(self, client, worker_a_headers):
        """Unknown relationship is a 404"""
        response = client.patch("/api/relationships/999", headers=worker_a_headers, json={})
        assert response.status_code == 404

    def test_patch_empty_type_rejected(self, client, worker_a_headers, family):
        """Empty relationship type is rejected"""
        _, edge = family

        response = client.patch(
            f"/api/relationships/{edge.id}", headers=worker_a_headers, json={"relationship_type": ""}
        )
        assert response.status_code == 422
