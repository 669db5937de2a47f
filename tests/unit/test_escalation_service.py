"""
Test suite for the EscalationService, with the ticket store replaced by an AsyncMock.
"""

from unittest.mock import AsyncMock

import pytest

from services.support.EscalationService import CONTACT_HINTS, TRANSCRIPT_MESSAGES, EscalationService
from shared.helper.HelperConfig import HelperConfig
from shared.models.chat import ChatRequest, RequestSummary
from shared.models.support import SupportTicket


@pytest.fixture
def support_client() -> AsyncMock:
    client = AsyncMock()
    client.do_create_ticket.return_value = SupportTicket(id="42", email="client@example.be", subject="[complaint] wandre")
    return client


@pytest.fixture
def service(helper_config: HelperConfig, support_client: AsyncMock) -> EscalationService:
    return EscalationService(helper_config=helper_config, support_client=support_client)


def _request(contact_email: str | None = "client@example.be", turns: int = 1) -> ChatRequest:
    messages = [{"role": "user" if i % 2 == 0 else "assistant", "content": f"message {i}"} for i in range(turns)]
    return ChatRequest(messages=messages, contact_email=contact_email)


FOLLOWUP = RequestSummary(intent="complaint", restaurant="wandre", urgency="high", needs_followup_by_staff=True)


class TestEscalationService:
    async def test_escalate_should_open_ticket_with_transcript(self, service: EscalationService, support_client: AsyncMock) -> None:
        # Arrange
        request = _request(turns=3)

        # Act
        ticket = await service.do_escalate(request, FOLLOWUP)

        # Assert
        assert ticket.id == "42"
        created = support_client.do_create_ticket.await_args.args[0]
        assert created.subject == "[complaint] wandre"
        assert created.category == "complaint"
        assert created.priority == "high"
        assert created.description.startswith("[ESCALATION]")
        assert "assistant: message 1" in created.description

    async def test_escalate_should_skip_turns_without_followup(self, service: EscalationService, support_client: AsyncMock) -> None:
        assert await service.do_escalate(_request(), RequestSummary(intent="menu_info")) is None
        assert await service.do_escalate(_request(), None) is None
        support_client.do_create_ticket.assert_not_awaited()

    async def test_escalate_should_skip_without_contact_email(self, service: EscalationService, support_client: AsyncMock) -> None:
        assert await service.do_escalate(_request(contact_email=None), FOLLOWUP) is None
        support_client.do_create_ticket.assert_not_awaited()

    async def test_escalate_should_return_none_when_store_fails(self, service: EscalationService, support_client: AsyncMock) -> None:
        support_client.do_create_ticket.side_effect = Exception("status 503")

        assert await service.do_escalate(_request(), FOLLOWUP) is None

    def test_ticket_should_keep_only_recent_messages(self, service: EscalationService) -> None:
        ticket = service.build_ticket(_request(turns=TRANSCRIPT_MESSAGES + 4), FOLLOWUP)

        assert "message 3" not in ticket.description
        assert f"message {TRANSCRIPT_MESSAGES + 3}" in ticket.description

    def test_ticket_should_default_category_and_branch(self, service: EscalationService) -> None:
        ticket = service.build_ticket(_request(), RequestSummary(intent="other", needs_followup_by_staff=True))

        assert ticket.category == "escalation"
        assert ticket.priority == "normal"
        assert ticket.subject == "[other] sans agence"

    def test_ticket_should_require_contact_email(self, service: EscalationService) -> None:
        with pytest.raises(ValueError, match="contact email"):
            service.build_ticket(_request(contact_email=None), FOLLOWUP)

    @pytest.mark.parametrize("language", ["fr", "en", "nl"])
    def test_contact_hint_should_follow_language(self, service: EscalationService, language: str) -> None:
        assert service.get_contact_hint(language) == CONTACT_HINTS[language]
