import json
from types import SimpleNamespace
import utils.file_manager as fm
from services.assistant import (
    AssistantChat,
    ERROR_REPLY,
    GREETING,
    NO_ANSWER,
    ask_sales_assistant,
    build_prompt,
)

class FakeModels:
    def __init__(self, reply="ok", error=None, on_call=None):
        self.reply = reply
        self.error = error
        self.on_call = on_call
        self.calls = []

    def generate_content(self, model, contents, config=None):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.on_call:
            self.on_call()
        if self.error:
            raise self.error
        return SimpleNamespace(text=self.reply)

def fake_client(**kwargs):
    return SimpleNamespace(models=FakeModels(**kwargs))

def setup_env(tmp_path, monkeypatch):
    monkeypatch.setattr(fm, "_DATA_DIR", tmp_path / "data")
    fm.ensure_defaults()

def records(n):
    return [{"id": str(i), "price": i} for i in range(n)]

def _context(prompt):
    line = prompt.split("Here is the raw JSON data of the recent sales:\n", 1)[1].split("\n", 1)[0]
    return json.loads(line)

def test_prompt_keeps_first_records_in_input_order():
    prompt = build_prompt("¿Cuánto vendimos?", records(600))
    ctx = _context(prompt)
    assert len(ctx) == 500
    assert ctx[0]["id"] == "0" and ctx[-1]["id"] == "499"
    assert prompt.rstrip().endswith("User Question: ¿Cuánto vendimos?")

def test_prompt_with_few_records():
    assert _context(build_prompt("q", records(3), limit=500)) == records(3)

def test_reply_is_returned_verbatim(tmp_path, monkeypatch):
    setup_env(tmp_path, monkeypatch)
    client = fake_client(reply="Vendiste S/ 100.00")
    assert ask_sales_assistant("total?", records(2), client=client) == "Vendiste S/ 100.00"
    call = client.models.calls[0]
    assert call["model"] == fm.DEFAULTS["config.json"]["assistant"]["model"]
    assert "total?" in call["contents"]

def test_configured_record_limit(tmp_path, monkeypatch):
    setup_env(tmp_path, monkeypatch)
    cfg = fm.read_json("config.json")
    cfg["assistant"]["max_records"] = 2
    fm.write_json("config.json", cfg)
    client = fake_client()
    ask_sales_assistant("q", records(5), client=client)
    assert len(_context(client.models.calls[0]["contents"])) == 2

def test_empty_reply_falls_back(tmp_path, monkeypatch):
    setup_env(tmp_path, monkeypatch)
    assert ask_sales_assistant("q", [], client=fake_client(reply="")) == NO_ANSWER

def test_transport_error_becomes_apology(tmp_path, monkeypatch):
    setup_env(tmp_path, monkeypatch)
    client = fake_client(error=TimeoutError("read timed out"))
    assert ask_sales_assistant("q", [], client=client) == ERROR_REPLY

def test_chat_history_survives_failures(tmp_path, monkeypatch):
    setup_env(tmp_path, monkeypatch)
    client = fake_client(error=ConnectionError("offline"))
    chat = AssistantChat(client=client)
    assert chat.ask("hola", []) == ERROR_REPLY

    client.models.error = None
    client.models.reply = "S/ 20.00"
    assert chat.ask("¿y ahora?", []) == "S/ 20.00"
    assert [m["role"] for m in chat.messages] == ["ai", "user", "ai", "user", "ai"]
    assert chat.messages[0]["text"] == GREETING
    assert not chat.is_waiting

def test_newer_question_supersedes_pending_one(tmp_path, monkeypatch):
    setup_env(tmp_path, monkeypatch)
    client = fake_client(reply="answer")
    chat = AssistantChat(client=client)
    nested = []

    def ask_again():
        # the user sends a second question while the first is still in flight
        client.models.on_call = None
        nested.append(chat.ask("second", []))

    client.models.on_call = ask_again
    assert chat.ask("first", []) is None
    assert nested == ["answer"]
    assert [m["text"] for m in chat.messages[1:]] == ["first", "second", "answer"]

def test_cancel_drops_reply(tmp_path, monkeypatch):
    setup_env(tmp_path, monkeypatch)
    client = fake_client(reply="late")
    chat = AssistantChat(client=client)
    client.models.on_call = chat.cancel
    assert chat.ask("q", []) is None
    assert [m["role"] for m in chat.messages] == ["ai", "user"]
    assert not chat.is_waiting

def test_reset_restores_greeting():
    chat = AssistantChat(client=fake_client())
    chat.messages.append({"role": "user", "text": "x", "timestamp": 0})
    chat.reset()
    assert [m["text"] for m in chat.messages] == [GREETING]
