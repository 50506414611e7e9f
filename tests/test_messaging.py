"""
Tests for troop chat and direct messages
"""

import pytest

from troop_cookies.errors import NotFoundError, ValidationError
from troop_cookies.events import DomainEvent, EventDispatcher
from troop_cookies.members import MemberDirectory, ScoutLevel
from troop_cookies.messaging import MAX_MESSAGE_LENGTH, MessageBoard
from troop_cookies.storage import InMemoryStorage


class TestMessageBoard:
    """Troop channel and direct message visibility"""

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.events = EventDispatcher()
        directory = MemberDirectory(self.storage)
        self.board = MessageBoard(self.storage, directory, self.events)

        self.alice = directory.add_member("Alice Archer", ScoutLevel.JUNIOR)
        self.bella = directory.add_member("Bella Brooks", ScoutLevel.JUNIOR)
        self.carol = directory.add_member("Carol Cole", ScoutLevel.JUNIOR)

    def test_troop_message_visible_to_all(self):
        message = self.board.send_message(self.alice, "  Booth at Safeway Saturday!  ")

        assert message.content == "Booth at Safeway Saturday!"
        assert not message.is_direct
        for member in (self.alice, self.bella, self.carol):
            assert [m.id for m in self.board.visible_messages(member)] == [message.id]

    def test_direct_message_visibility(self):
        troop = self.board.send_message(self.alice, "Hi troop")
        direct = self.board.send_message(self.alice, "Want to trade Samoas?", recipient_id=self.bella.id)

        assert direct.is_direct
        assert [m.id for m in self.board.visible_messages(self.alice)] == [troop.id, direct.id]
        assert [m.id for m in self.board.visible_messages(self.bella)] == [troop.id, direct.id]
        assert [m.id for m in self.board.visible_messages(self.carol)] == [troop.id]
        assert [m.id for m in self.board.troop_messages()] == [troop.id]

    def test_conversation(self):
        first = self.board.send_message(self.alice, "Trade?", recipient_id=self.bella.id)
        second = self.board.send_message(self.bella, "Sure", recipient_id=self.alice.id)
        self.board.send_message(self.alice, "Hi Carol", recipient_id=self.carol.id)

        assert [m.id for m in self.board.conversation(self.alice.id, self.bella.id)] == [first.id, second.id]
        assert [m.id for m in self.board.conversation(self.bella.id, self.alice.id)] == [first.id, second.id]
        assert self.board.conversation(self.bella.id, self.carol.id) == []

    def test_conversation_partners_most_recent_first(self):
        self.board.send_message(self.alice, "Trade?", recipient_id=self.bella.id)
        self.board.send_message(self.carol, "Hi Alice", recipient_id=self.alice.id)
        self.board.send_message(self.alice, "Hi troop")

        assert self.board.conversation_partners(self.alice) == [self.carol.id, self.bella.id]
        assert self.board.conversation_partners(self.bella) == [self.alice.id]

    def test_blank_message(self):
        with pytest.raises(ValidationError):
            self.board.send_message(self.alice, "   ")

    def test_oversized_message(self):
        with pytest.raises(ValidationError):
            self.board.send_message(self.alice, "x" * (MAX_MESSAGE_LENGTH + 1))
        assert self.board.send_message(self.alice, "x" * MAX_MESSAGE_LENGTH)

    def test_message_to_self(self):
        with pytest.raises(ValidationError):
            self.board.send_message(self.alice, "note to self", recipient_id=self.alice.id)

    def test_unknown_recipient(self):
        with pytest.raises(NotFoundError):
            self.board.send_message(self.alice, "hello", recipient_id="u_nobody")
        assert self.board.troop_messages() == []

    def test_message_event(self):
        seen = []
        self.events.subscribe(DomainEvent.MESSAGE_SENT, seen.append)

        message = self.board.send_message(self.alice, "hello", recipient_id=self.bella.id)

        assert seen[0].entity_id == message.id
        assert seen[0].data == {"sender_id": self.alice.id, "recipient_id": self.bella.id}
