"""Tests for the per-message receptionist orchestration."""

import asyncio

import pytest

from frontdesk.agent.invoker import AgentInvocationError
from frontdesk.agent.personas import AgentPersona, InMemoryPersonaStore
from frontdesk.agent.receptionist import FALLBACK_TEXT, AgentReply, ReceptionistService
from frontdesk.session.history import HistoryStore, Turn


class _FakeInvoker:
    """Returns scripted replies; Exception instances are raised instead."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls: list[tuple[str, str]] = []

    async def invoke(self, prompt: str, system_prompt: str) -> str:
        self.calls.append((prompt, system_prompt))
        reply = self.replies.pop(0) if self.replies else "ok"
        if isinstance(reply, BaseException):
            raise reply
        return reply


class _RecordingSink:
    def __init__(self):
        self.records: list[tuple[str, str, str, dict]] = []

    def info(self, message, tag, **fields):
        self.records.append(("info", message, tag, fields))

    def error(self, message, tag, **fields):
        self.records.append(("error", message, tag, fields))


class _ExplodingSink:
    def info(self, message, tag, **fields):
        raise RuntimeError("sink down")

    def error(self, message, tag, **fields):
        raise RuntimeError("sink down")


def _service(invoker, personas=None, sink=None, **kwargs) -> ReceptionistService:
    return ReceptionistService(personas, invoker, sink=sink or _RecordingSink(), **kwargs)


class TestHandleMessage:
    @pytest.mark.asyncio
    async def test_successful_turn_records_both_turns(self) -> None:
        raw = 'Hi there!\n{"action":"none"}'
        service = _service(_FakeInvoker(raw))

        reply = await service.handle_message("agent-1", "c1", "Hello")

        assert reply == AgentReply(clean_text="Hi there!", action={"action": "none"})
        assert service.history("c1") == (Turn("user", "Hello"), Turn("assistant", raw))

    @pytest.mark.asyncio
    async def test_transport_error_returns_fallback_and_keeps_user_turn(self) -> None:
        sink = _RecordingSink()
        service = _service(_FakeInvoker(AgentInvocationError("socket closed")), sink=sink)

        reply = await service.handle_message("agent-1", "c1", "Hello")

        assert reply == AgentReply(clean_text=FALLBACK_TEXT, action=None)
        assert service.history("c1") == (Turn("user", "Hello"),)
        level, message, tag, fields = sink.records[-1]
        assert level == "error"
        assert tag == "receptionist"
        assert fields["failed_at"] == "invoking"
        assert "socket closed" not in reply.clean_text

    @pytest.mark.asyncio
    async def test_unexpected_exception_also_falls_back(self) -> None:
        service = _service(_FakeInvoker(KeyError("weird")))
        reply = await service.handle_message("agent-1", "c1", "Hello")
        assert reply.clean_text == FALLBACK_TEXT
        assert reply.action is None

    @pytest.mark.asyncio
    async def test_conversation_usable_after_failure(self) -> None:
        invoker = _FakeInvoker(AgentInvocationError("boom"), "Agora sim")
        service = _service(invoker)

        await service.handle_message("agent-1", "c1", "primeira")
        reply = await service.handle_message("agent-1", "c1", "segunda")

        assert reply.clean_text == "Agora sim"
        assert service.history("c1") == (
            Turn("user", "primeira"),
            Turn("user", "segunda"),
            Turn("assistant", "Agora sim"),
        )
        prompt, _ = invoker.calls[-1]
        assert "Usuário: primeira" in prompt
        assert "## Mensagem atual do usuário:\nsegunda" in prompt

    @pytest.mark.asyncio
    async def test_twenty_five_turns_keep_last_twenty(self) -> None:
        replies = [f"reply {i}" for i in range(1, 26)]
        service = _service(_FakeInvoker(*replies))

        for i in range(1, 26):
            await service.handle_message("agent-1", "c1", f"msg {i}")

        history = service.history("c1")
        assert len(history) == 20
        expected = []
        for i in range(16, 26):
            expected += [Turn("user", f"msg {i}"), Turn("assistant", f"reply {i}")]
        assert list(history) == expected

    @pytest.mark.asyncio
    async def test_image_content_is_normalized_before_recording(self) -> None:
        invoker = _FakeInvoker("Recebi!")
        service = _service(invoker)
        content = [
            {"type": "text", "text": "olha"},
            {"type": "image", "source": {"type": "base64", "media_type": "image/jpeg", "data": "..."}},
        ]

        await service.handle_message("agent-1", "c1", content)

        assert service.history("c1")[0] == Turn("user", "olha\n[Usuário enviou uma imagem]")

    @pytest.mark.asyncio
    async def test_directive_only_reply_is_valid(self) -> None:
        service = _service(_FakeInvoker('{"action": "escalate", "reason": "bug"}'))
        reply = await service.handle_message("agent-1", "c1", "o site caiu")
        assert reply == AgentReply(clean_text="", action={"action": "escalate", "reason": "bug"})

    @pytest.mark.asyncio
    async def test_success_emits_preview_record(self) -> None:
        sink = _RecordingSink()
        long_text = "x" * 200
        service = _service(_FakeInvoker(long_text + '\n{"action":"create_task"}'), sink=sink)

        await service.handle_message("agent-1", "c1", "Hello")

        level, message, tag, fields = sink.records[-1]
        assert level == "info"
        assert tag == "receptionist"
        assert "x" * 80 + "..." in message
        assert "x" * 81 not in message
        assert fields["action"] == "create_task"

    @pytest.mark.asyncio
    async def test_failing_sink_does_not_change_result(self) -> None:
        service = _service(_FakeInvoker("Oi!"), sink=_ExplodingSink())
        reply = await service.handle_message("agent-1", "c1", "Hello")
        assert reply.clean_text == "Oi!"

        service = _service(_FakeInvoker(AgentInvocationError("x")), sink=_ExplodingSink())
        reply = await service.handle_message("agent-1", "c1", "Hello")
        assert reply.clean_text == FALLBACK_TEXT


class TestPersonaResolution:
    @pytest.mark.asyncio
    async def test_known_agent_soul_reaches_system_prompt(self) -> None:
        store = InMemoryPersonaStore({"a1": AgentPersona(role="receptionist", soul="# Soul: Bia")})
        invoker = _FakeInvoker("ok")

        await _service(invoker, personas=store).handle_message("a1", "c1", "oi")

        _, system_prompt = invoker.calls[0]
        assert "# Soul: Bia" in system_prompt

    @pytest.mark.asyncio
    async def test_missing_agent_uses_default_persona(self) -> None:
        invoker = _FakeInvoker("ok")
        reply = await _service(invoker, personas=InMemoryPersonaStore()).handle_message("ghost", "c1", "oi")

        assert reply.clean_text == "ok"
        _, system_prompt = invoker.calls[0]
        assert "# Soul: Recepcionista" in system_prompt

    @pytest.mark.asyncio
    async def test_failing_store_does_not_fail_turn(self) -> None:
        async def lookup(agent_id):
            raise ConnectionError("db offline")

        reply = await _service(_FakeInvoker("ok"), personas=lookup).handle_message("a1", "c1", "oi")
        assert reply.clean_text == "ok"


class TestClearConversation:
    @pytest.mark.asyncio
    async def test_clear_resets_history(self) -> None:
        service = _service(_FakeInvoker("a", "b"))
        await service.handle_message("agent-1", "c1", "one")
        await service.handle_message("agent-1", "c2", "two")

        service.clear_conversation("c1")

        assert service.history("c1") == ()
        assert len(service.history("c2")) == 2

    @pytest.mark.asyncio
    async def test_clear_during_pending_turn_keeps_history_empty(self) -> None:
        started = asyncio.Event()
        release = asyncio.Event()

        class _BlockingInvoker:
            async def invoke(self, prompt, system_prompt):
                started.set()
                await release.wait()
                return "resposta"

        service = _service(_BlockingInvoker())
        task = asyncio.create_task(service.handle_message("agent-1", "c1", "oi"))
        await started.wait()

        service.clear_conversation("c1")
        release.set()
        reply = await task

        assert reply == AgentReply(clean_text="resposta", action=None)
        assert service.history("c1") == ()


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_same_conversation_turns_do_not_interleave(self) -> None:
        class _SlowInvoker(_FakeInvoker):
            async def invoke(self, prompt, system_prompt):
                await asyncio.sleep(0.01)
                return await super().invoke(prompt, system_prompt)

        service = _service(_SlowInvoker("r1", "r2"))

        await asyncio.gather(
            service.handle_message("agent-1", "c1", "m1"),
            service.handle_message("agent-1", "c1", "m2"),
        )

        roles = [t.role for t in service.history("c1")]
        assert roles == ["user", "assistant", "user", "assistant"]

    @pytest.mark.asyncio
    async def test_different_conversations_proceed_in_parallel(self) -> None:
        started = asyncio.Event()
        release = asyncio.Event()

        class _BlockingInvoker:
            async def invoke(self, prompt, system_prompt):
                if "bloqueia" in prompt:
                    started.set()
                    await release.wait()
                return "ok"

        service = _service(_BlockingInvoker())
        blocked = asyncio.create_task(service.handle_message("agent-1", "slow", "bloqueia"))
        await started.wait()

        reply = await asyncio.wait_for(service.handle_message("agent-1", "fast", "oi"), timeout=1.0)
        assert reply.clean_text == "ok"

        release.set()
        await blocked


class TestStatus:
    @pytest.mark.asyncio
    async def test_counters_track_outcomes(self) -> None:
        history = HistoryStore(max_turns=4)
        service = ReceptionistService(
            None,
            _FakeInvoker("ok", AgentInvocationError("x")),
            history=history,
            sink=_RecordingSink(),
        )
        await service.handle_message("a", "c1", "1")
        await service.handle_message("a", "c2", "2")

        status = service.status()
        assert status["conversations"] == 2
        assert status["turns_succeeded"] == 1
        assert status["turns_failed"] == 1
        assert status["last_failure_state"] == "invoking"
        assert status["last_processed_at"] is not None
