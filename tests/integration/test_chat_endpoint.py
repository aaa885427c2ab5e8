from tests.fakes import DELTA_GREEN_FILE, FakeBlobStore, FakeLanguageModel, bucket_objects


def test_chat_returns_model_reply(make_client):
    llm = FakeLanguageModel(classification="GUIDE", reply="We have three degreasers.")
    client = make_client(llm=llm)

    response = client.post("/chat", json={"message": "what degreasers do you have", "history": []})

    assert response.status_code == 200
    assert response.json() == {"response": "We have three degreasers."}
    assert response.headers.get("X-Request-ID")


def test_pronoun_question_without_product_clarifies(make_client):
    llm = FakeLanguageModel(classification="CLARIFY")
    client = make_client(llm=llm)

    response = client.post("/chat", json={"message": "is it toxic", "history": []})

    assert response.status_code == 200
    system_instruction = llm.chats[0]["system_instruction"]
    assert "STATUS: NO PRODUCT NAMED." in system_instruction
    assert llm.chats[0]["message"] == "is it toxic"


def test_delivery_with_known_zip(make_client):
    llm = FakeLanguageModel(classification="DELIVERY")
    client = make_client(llm=llm)

    response = client.post("/chat", json={"message": "can you deliver to 59101?"})

    assert response.status_code == 200
    system_instruction = llm.chats[0]["system_instruction"]
    assert "MATCH FOUND. Delivers to Billings (Yellowstone County)" in system_instruction


def test_delivery_with_unknown_zip(make_client):
    llm = FakeLanguageModel(classification="DELIVERY")
    client = make_client(llm=llm)

    client.post("/chat", json={"message": "do you deliver to 10001"})

    assert "ZIP 10001: NO MATCH FOUND" in llm.chats[0]["system_instruction"]


def test_document_answer_uses_premium_and_technical_record(make_client):
    llm = FakeLanguageModel(classification=f"`{DELTA_GREEN_FILE}`")
    client = make_client(llm=llm)
    history = [
        {"role": "assistant", "content": "Hi! How can I help?"},
        {"role": "user", "content": "Tell me about Delta Green"},
        {"role": "assistant", "content": "It's our plant-based option."},
    ]

    response = client.post("/chat", json={"message": "what's the first aid for it?", "history": history})

    assert response.status_code == 200
    call = llm.chats[0]
    assert "DISPLAY NAME: Delta Green" in call["system_instruction"]
    assert "Rinse with water." in call["system_instruction"]
    assert [entry["role"] for entry in call["history"]] == ["user", "model"]
    assert "user: Tell me about Delta Green" in llm.prompts[0]


def test_metadata_is_fetched_once_across_turns(make_client):
    store = FakeBlobStore(bucket_objects())
    client = make_client(blob_store=store)

    for _ in range(3):
        assert client.post("/chat", json={"message": "hello"}).status_code == 200

    assert store.list_calls == 1


def test_degraded_source_does_not_fail_request(make_client):
    store = FakeBlobStore(bucket_objects(), failing={"use_cases.json"})
    llm = FakeLanguageModel(classification="USE_CASE")
    client = make_client(llm=llm, blob_store=store)

    response = client.post("/chat", json={"message": "my shower has soap scum"})

    assert response.status_code == 200
    assert "USE CASE MAP UNAVAILABLE" in llm.chats[0]["system_instruction"]
    assert client.get("/ready").json()["components"]["metadata_cache"]["degraded"] == ["use_cases"]


def test_health_and_metrics(make_client):
    client = make_client(llm=FakeLanguageModel(classification="GENERAL"))

    assert client.get("/health").json() == {"status": "ok"}
    client.post("/chat", json={"message": "what's the weather like"})

    metrics = client.get("/metrics").json()
    assert metrics["total_requests"] == 1
    assert metrics["decisions"] == {"GENERAL": 1}


def test_ready_reports_configuration(make_client):
    ready = make_client().get("/ready").json()

    assert ready["status"] == "ok"
    assert ready["components"]["premium_dataset"]["records"] == 4
    assert ready["components"]["metadata_cache"]["warm"] is False

    assert make_client(gemini_api_key=None).get("/ready").json()["status"] == "fail"
