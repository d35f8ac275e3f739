import pytest
from pydantic import ValidationError

from org_directory.schemas.profile import (
    BatchRequest,
    BatchRequestItem,
    BatchResponse,
    DirectReportsPage,
    GraphUser,
    Profile,
)


def test_graph_user_to_profile():
    payload = {
        "id": "u1",
        "displayName": "Alice Smith",
        "jobTitle": "Engineer",
        "mail": "alice@contoso.com",
        "department": "R&D",
        "officeLocation": "B1",
        "city": "Redmond",
        "businessPhones": ["+1 425 555 0100", "+1 425 555 0101"],
        "imAddresses": ["sip:alice@contoso.com"],
        "companyName": "Contoso",
        "@odata.type": "#microsoft.graph.user",
    }

    profile = GraphUser.model_validate(payload).to_profile()

    assert profile.id == "u1"
    assert profile.display_name == "Alice Smith"
    assert profile.email == "alice@contoso.com"
    assert profile.business_phone == "+1 425 555 0100"
    assert profile.im_address == "sip:alice@contoso.com"
    assert profile.company_name == "Contoso"


def test_graph_user_tolerates_missing_optional_fields():
    profile = GraphUser.model_validate({"id": "u2", "businessPhones": []}).to_profile()

    assert profile.id == "u2"
    assert profile.email is None
    assert profile.business_phone is None
    assert profile.im_address is None


def test_graph_user_requires_id():
    with pytest.raises(ValidationError):
        GraphUser.model_validate({"displayName": "No Id"})


def test_profile_is_immutable():
    profile = Profile(id="u1", email="a@b.c")
    with pytest.raises(ValidationError):
        profile.email = "x@y.z"


def test_profile_lookup_keys():
    assert list(Profile(id="u1", email="a@b.c").lookup_keys()) == ["u1", "a@b.c"]
    assert list(Profile(id="u1").lookup_keys()) == ["u1"]


def test_direct_reports_page_account_enabled():
    page = DirectReportsPage.model_validate(
        {
            "value": [
                {"id": "d1", "accountEnabled": True},
                {"id": "d2", "accountEnabled": False},
                {"id": "d3"},
            ]
        }
    )
    assert [u.account_enabled for u in page.value] == [True, False, None]


def test_batch_request_dump():
    request = BatchRequest(
        requests=[BatchRequestItem(id="1", method="GET", url="/users/u1")]
    )
    assert request.model_dump() == {
        "requests": [{"id": "1", "method": "GET", "url": "/users/u1"}]
    }


def test_batch_response_parsing():
    batch = BatchResponse.model_validate(
        {
            "responses": [
                {"id": "2", "status": 404, "body": {"error": {"message": "x"}}},
                {"id": 1, "status": 200, "headers": {"Content-Type": "application/json"}, "body": {"id": "u1"}},
            ]
        }
    )

    assert [item.id for item in batch.responses] == ["2", "1"]
    assert not batch.responses[0].is_success
    assert batch.responses[1].is_success
    assert batch.responses[0].headers == {}
