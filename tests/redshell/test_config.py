from redshell.config import DEFAULT_ANTHROPIC_MODEL, DEFAULT_CHAIN_ID, load_settings


def test_load_settings_trims_and_drops_empty_values():
    settings = load_settings(
        {
            "REDSHELL_WALLET_ADDRESS": "  0xabc  ",
            "ALCHEMY_WEBHOOK_SECRET": "   ",
            "ACP_CONTRACT_FUNCTION": "signMemo\n",
        }
    )
    assert settings.wallet_address == "0xabc"
    assert settings.webhook_secret is None
    assert settings.contract_function == "signMemo"


def test_load_settings_defaults():
    settings = load_settings({})
    assert settings.chain_id == DEFAULT_CHAIN_ID
    assert settings.anthropic_model == DEFAULT_ANTHROPIC_MODEL
    assert settings.receipt_timeout == 180.0
    assert settings.lookup_pending_memo is True
    assert settings.contract_args is None


def test_load_settings_numeric_and_flag_parsing():
    settings = load_settings({"REDSHELL_RECEIPT_TIMEOUT": "45", "REDSHELL_LOOKUP_PENDING_MEMO": "off"})
    assert settings.receipt_timeout == 45.0
    assert settings.lookup_pending_memo is False

    fallback = load_settings({"REDSHELL_RECEIPT_TIMEOUT": "soon"})
    assert fallback.receipt_timeout == 180.0


def test_load_settings_reads_process_environment(monkeypatch):
    monkeypatch.setenv("BASE_RPC_URL", "https://sepolia.base.org")
    monkeypatch.setenv("CHAIN_ID", "8453")
    settings = load_settings()
    assert settings.rpc_url == "https://sepolia.base.org"
    assert settings.chain_id == "8453"
