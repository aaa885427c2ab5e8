import pytest

from tests.fakes import FakeLanguageModel


def test_missing_credentials_returns_503(make_client):
    client = make_client(gemini_api_key=None)

    response = client.post("/chat", json={"message": "hello"})

    assert response.status_code == 503
    assert response.json()["code"] == "CONFIGURATION_ERROR"


def test_missing_credentials_win_over_malformed_body(make_client):
    client = make_client(gemini_api_key=None)

    response = client.post("/chat", content=b"{not json", headers={"content-type": "application/json"})

    assert response.status_code == 503
    assert response.json()["code"] == "CONFIGURATION_ERROR"
    assert client.get("/metrics").json()["rejections"] == {"CONFIGURATION_ERROR": 1}


@pytest.mark.parametrize(
    "body",
    [
        {"history": []},
        {"message": "   "},
        {"message": ["not", "a", "string"]},
        {"message": "x" * 2001},
        {"message": "hello", "history": "user: hi"},
    ],
)
def test_invalid_input_returns_400(make_client, body):
    response = make_client().post("/chat", json=body)

    assert response.status_code == 400
    payload = response.json()
    assert payload["code"] == "VALIDATION_ERROR"
    assert payload["error"] == "Invalid request"
    assert payload["details"]


def test_non_json_body_returns_400(make_client):
    response = make_client().post("/chat", content=b"message=hello", headers={"content-type": "text/plain"})

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_classifier_failure_returns_generic_500(make_client):
    client = make_client(llm=FakeLanguageModel(classification=RuntimeError("API key leaked-secret invalid")))

    response = client.post("/chat", json={"message": "hello"})

    assert response.status_code == 500
    payload = response.json()
    assert payload["code"] == "INTERNAL_ERROR"
    assert "leaked-secret" not in response.text


def test_answer_failure_returns_generic_500(make_client):
    client = make_client(llm=FakeLanguageModel(reply=ConnectionError("upstream reset")))

    response = client.post("/chat", json={"message": "hello"})

    assert response.status_code == 500
    assert response.json()["code"] == "INTERNAL_ERROR"
    assert "upstream" not in response.text

    rejections = client.get("/metrics").json()["rejections"]
    assert rejections == {"INTERNAL_ERROR": 1}
