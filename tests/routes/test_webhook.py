"""Tests for the webhook judge router."""

from __future__ import annotations

import json

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from redshell.chain import SubmissionReceipt
from redshell.config import Settings, get_settings
from redshell.verdicts import SubmissionOutcome, Verdict, VerdictOrchestrator
from routes import webhook as webhook_module
from routes.webhook import LIVENESS_MESSAGE, get_judge, get_orchestrator_factory, health_router, router

WALLET = "0x" + "ab" * 20
EVENT = {"jobId": "42", "memoId": "7", "evaluator": WALLET.upper().replace("0X", "0x"), "deliverable": "A poem."}


class StubJudge:
    def __init__(self, verdict=None, error=None):
        self.verdict = verdict or Verdict(approved=True, reason="Looks right.", judge="text")
        self.error = error
        self.events = []

    async def __call__(self, event, settings):
        self.events.append(event)
        if self.error:
            raise self.error
        return self.verdict


class StubOrchestrator:
    def __init__(self, settings, calls):
        self.settings = settings
        self.calls = calls

    async def submit(self, verdict, *, job_id, memo_id, correlation_id):
        self.calls.append({"verdict": verdict, "job_id": job_id, "memo_id": memo_id, "cid": correlation_id})
        return SubmissionOutcome(status="skipped", detail="stubbed")


@pytest.fixture
def harness():
    state = {"settings": Settings(wallet_address=WALLET), "judge": StubJudge(), "submissions": []}

    app = FastAPI()
    app.include_router(health_router)
    app.include_router(router)
    app.dependency_overrides[get_settings] = lambda: state["settings"]
    app.dependency_overrides[get_judge] = lambda: state["judge"]
    app.dependency_overrides[get_orchestrator_factory] = lambda: (
        lambda settings: StubOrchestrator(settings, state["submissions"])
    )
    with TestClient(app) as client:
        state["client"] = client
        yield state


def post(client, payload, **headers):
    body = payload if isinstance(payload, (str, bytes)) else json.dumps(payload)
    return client.post("/", content=body, headers={"content-type": "application/json", **headers})


def test_liveness_and_method_guard(harness):
    client = harness["client"]
    response = client.get("/")
    assert response.status_code == 200
    assert response.text == LIVENESS_MESSAGE
    assert client.head("/").status_code == 200
    assert client.put("/", content="{}").status_code == 405


def test_malformed_json_is_rejected(harness):
    response = post(harness["client"], "{not json")
    assert response.status_code == 400
    assert response.json()["detail"] == "INVALID_JSON"
    assert harness["judge"].events == []


def test_wrong_signature_is_unauthorized(harness):
    harness["settings"] = Settings(wallet_address=WALLET, webhook_secret="s3cr3t")
    response = post(harness["client"], EVENT, **{"x-signature": "wrong"})
    assert response.status_code == 401
    assert response.json()["detail"] == "SIGNATURE_INVALID"
    assert harness["judge"].events == []
    assert harness["submissions"] == []


def test_missing_signature_is_unauthorized(harness):
    harness["settings"] = Settings(wallet_address=WALLET, webhook_secret="s3cr3t")
    response = post(harness["client"], EVENT)
    assert response.status_code == 401
    assert response.json()["detail"] == "SIGNATURE_MISSING"


@pytest.mark.parametrize("header", ["x-alchemy-signature", "X-Webhook-Signature", "x-signature"])
def test_matching_signature_is_accepted(harness, header):
    harness["settings"] = Settings(wallet_address=WALLET, webhook_secret="s3cr3t")
    response = post(harness["client"], EVENT, **{header: "s3cr3t"})
    assert response.status_code == 200


def test_signature_check_skipped_without_secret(harness):
    response = post(harness["client"], EVENT, **{"x-signature": "anything"})
    assert response.status_code == 200


def test_evaluator_mismatch_is_ignored(harness):
    event = dict(EVENT, evaluator="0x" + "cd" * 20)
    response = post(harness["client"], event)
    assert response.status_code == 202
    assert response.text == "Ignored"
    assert harness["judge"].events == []


def test_missing_wallet_or_evaluator_is_ignored(harness):
    harness["settings"] = Settings()
    assert post(harness["client"], EVENT).status_code == 202

    harness["settings"] = Settings(wallet_address=WALLET)
    event = {key: value for key, value in EVENT.items() if key != "evaluator"}
    assert post(harness["client"], event).status_code == 202
    assert harness["judge"].events == []


def test_successful_event_returns_verdict(harness):
    harness["judge"] = StubJudge(Verdict(approved=False, reason="Off topic.", judge="text"))
    response = post(harness["client"], EVENT, **{"X-Request-ID": "req-1"})

    assert response.status_code == 200
    assert response.json() == {
        "ok": True,
        "jobId": "42",
        "verdict": {"approved": False, "reason": "Off topic.", "judge": "text"},
    }
    (submission,) = harness["submissions"]
    assert submission["job_id"] == "42"
    assert submission["memo_id"] == "7"
    assert submission["cid"] == "req-1"
    assert submission["verdict"].reason == "Off topic."


def test_nested_payload_identifiers(harness):
    event = {"data": {"jobId": 42, "evaluator": WALLET, "deliverable": "ok"}}
    response = post(harness["client"], event)
    assert response.status_code == 200
    assert response.json()["jobId"] == "42"
    assert harness["submissions"][0]["memo_id"] is None


def test_unexpected_error_becomes_500(harness):
    harness["judge"] = StubJudge(error=RuntimeError("boom"))
    response = post(harness["client"], EVENT)
    assert response.status_code == 500
    assert response.json() == {"detail": "INTERNAL_ERROR"}
    assert harness["submissions"] == []


def test_health_and_metrics(harness):
    client = harness["client"]
    post(client, EVENT)
    assert client.get("/healthz").json() == {"ok": True}
    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    assert "redshell_webhook_requests_total" in metrics.text
    assert "redshell_verdicts_total" in metrics.text


def test_default_orchestrator_skips_unconfigured_chain(harness):
    harness["client"].app.dependency_overrides.pop(get_orchestrator_factory)
    response = post(harness["client"], EVENT)
    assert response.status_code == 200
    assert response.json()["verdict"]["approved"] is True


def test_default_dependencies():
    assert get_judge() is webhook_module.route_to_judge
    assert get_orchestrator_factory() is webhook_module.VerdictOrchestrator


def test_oversized_job_id_is_judged_and_submitted(harness):
    abi = [
        {
            "type": "function",
            "name": "recordVerdict",
            "stateMutability": "nonpayable",
            "inputs": [{"name": "jobId", "type": "uint256"}, {"name": "approved", "type": "bool"}],
        }
    ]
    harness["settings"] = Settings(
        wallet_address=WALLET,
        wallet_private_key="11" * 32,
        rpc_url="http://rpc.invalid",
        contract_address="0x" + "cd" * 20,
        contract_abi=json.dumps(abi),
        contract_function="recordVerdict",
    )
    sent = []

    class RecordingSubmitter:
        def submit(self, contract_address, abi, function_name, args):
            sent.append(list(args))
            return SubmissionReceipt(tx_hash="0xfeed", block_number=1, status=1)

    harness["client"].app.dependency_overrides[get_orchestrator_factory] = lambda: (
        lambda settings: VerdictOrchestrator(
            settings,
            submitter_factory=lambda plan, _settings: RecordingSubmitter(),
            memo_lookup=lambda job_id, _settings: None,
        )
    )

    huge = "1" * 5000
    response = post(harness["client"], {"jobId": huge, "evaluator": WALLET, "deliverable": "A poem."})

    assert response.status_code == 200
    assert response.json()["jobId"] == huge
    assert sent == [[(10**5000 - 1) // 9, True]]
