import gemini_chat
from conftest import run
from gemini_chat import ErrorKind, chat_loop, get_fallback_message
from settings import Settings


def _feed_input(monkeypatch, lines):
    remaining = list(lines)

    def fake_input(prompt=""):
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    monkeypatch.setattr("builtins.input", fake_input)


def test_chat_loop_prints_replies_until_exit(monkeypatch, gateway, genai_client, capsys):
    _feed_input(monkeypatch, ["hello", "   ", "exit"])

    run(chat_loop(gateway))

    out = capsys.readouterr().out
    assert "Gemini: Hi there" in out
    assert out.rstrip().endswith("Goodbye!")
    assert len(genai_client.models.calls) == 1


def test_chat_loop_prints_fallback_on_failure(monkeypatch, gateway, genai_client, capsys):
    genai_client.models.error = RuntimeError("quota exceeded")
    _feed_input(monkeypatch, ["hello"])

    run(chat_loop(gateway))

    out = capsys.readouterr().out
    assert f"Error: {get_fallback_message(ErrorKind.QUOTA_EXCEEDED)}" in out
    assert "Goodbye!" in out


def test_main_fails_without_ai_key(monkeypatch, capsys):
    monkeypatch.setattr(gemini_chat, "load_settings", lambda: Settings(telegram_bot_token=None, gemini_api_key=None))

    assert gemini_chat.main([]) == 1

    assert "AI service is not configured" in capsys.readouterr().out


def test_main_runs_chat_loop_with_model_argument(monkeypatch, genai_client, capsys):
    monkeypatch.setattr(gemini_chat, "load_settings", lambda: Settings(telegram_bot_token=None, gemini_api_key="key"))
    monkeypatch.setattr(gemini_chat.genai, "Client", lambda api_key: genai_client)
    _feed_input(monkeypatch, ["quit"])

    assert gemini_chat.main(["gemini-console"]) == 0

    assert "Gemini chat started with model: gemini-console" in capsys.readouterr().out
