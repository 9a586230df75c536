from typer.testing import CliRunner

import frontdesk.cli.commands as commands_module
from frontdesk import __version__
from frontdesk.agent.receptionist import ReceptionistService
from frontdesk.cli.commands import app
from frontdesk.config.schema import Config

runner = CliRunner()


class _Invoker:
    def __init__(self):
        self.prompts: list[str] = []

    async def invoke(self, prompt, system_prompt):
        self.prompts.append(prompt)
        return 'Tudo certo!\n{"action": "create_task", "title": "Deploy"}'


class _NullSink:
    def info(self, message, tag, **fields):
        pass

    def error(self, message, tag, **fields):
        pass


def _patch_service(monkeypatch) -> ReceptionistService:
    service = ReceptionistService(None, _Invoker(), sink=_NullSink())
    monkeypatch.setattr(commands_module, "_load", lambda config_path: Config())
    monkeypatch.setattr(commands_module, "_make_service", lambda config: service)
    return service


def test_version() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_ask_prints_clean_text_and_action(monkeypatch) -> None:
    _patch_service(monkeypatch)

    result = runner.invoke(app, ["ask", "faz o deploy"])

    assert result.exit_code == 0
    assert "Tudo certo!" in result.stdout
    assert 'action: {"action": "create_task", "title": "Deploy"}' in result.stdout


def test_chat_reset_and_exit(monkeypatch) -> None:
    service = _patch_service(monkeypatch)

    result = runner.invoke(
        app,
        ["chat", "--conversation-id", "cli:test"],
        input="oi\n/reset\nde novo\nexit\n",
    )

    assert result.exit_code == 0
    assert "Conversation cleared." in result.stdout
    assert "Goodbye!" in result.stdout
    # History was cleared between the two messages.
    assert [t.text for t in service.history("cli:test") if t.role == "user"] == ["de novo"]
    assert "Conversa anterior" not in service.invoker.prompts[-1]


def test_serve_health_loads_config_once(monkeypatch) -> None:
    loads: list[object] = []
    servers: list[tuple[str, int]] = []

    def fake_load_config(path=None):
        loads.append(path)
        cfg = Config()
        cfg.health.port = 19001
        return cfg

    class _FakeHealthServer:
        def __init__(self, service, host, port):
            servers.append((host, port))

    def fake_run(coro):
        coro.close()
        raise KeyboardInterrupt

    monkeypatch.setattr(commands_module, "load_config", fake_load_config)
    monkeypatch.setattr(commands_module, "setup_logging", lambda **kwargs: None)
    monkeypatch.setattr(commands_module, "create_service", lambda config: object())
    monkeypatch.setattr(commands_module, "HealthServer", _FakeHealthServer)
    monkeypatch.setattr(commands_module.asyncio, "run", fake_run)

    result = runner.invoke(app, ["serve-health"])

    assert result.exit_code == 0
    assert "Stopped." in result.stdout
    assert len(loads) == 1
    assert servers == [("127.0.0.1", 19001)]
