"""Unit tests for the transcript reducer."""
import pytest
from hypothesis import given
from hypothesis import strategies as st

from stackmate.conversation import (
    ConversationSeeded,
    FailureKind,
    FragmentReceived,
    Message,
    Role,
    StreamEnded,
    StreamFailed,
    UserSubmitted,
    reduce_transcript,
)

GREETING = Message(role=Role.ASSISTANT, content="Hello there!")
ENDED = StreamEnded(empty_reply="No answer this time.")


def _fold(transcript, *events):
    for event in events:
        transcript = reduce_transcript(transcript, event)
    return transcript


class TestUserSubmitted:
    """Tests for appending user messages."""

    def test_appends_finalized_user_message(self):
        transcript = reduce_transcript((GREETING,), UserSubmitted(text="Hi"))

        assert transcript == (GREETING, Message(role=Role.USER, content="Hi"))
        assert not transcript[-1].pending

    def test_input_transcript_is_unchanged(self):
        original = (GREETING,)
        reduce_transcript(original, UserSubmitted(text="Hi"))
        assert original == (GREETING,)


class TestFragmentReceived:
    """Tests for folding fragments into the pending reply."""

    def test_first_fragment_starts_pending_reply(self):
        transcript = _fold((GREETING,), UserSubmitted(text="Hi"), FragmentReceived(text="Hel"))

        assert len(transcript) == 3
        assert transcript[-1] == Message(role=Role.ASSISTANT, content="Hel", pending=True)

    def test_fragments_concatenate_in_order(self):
        transcript = _fold(
            (GREETING,),
            UserSubmitted(text="Hi"),
            FragmentReceived(text="Hel"),
            FragmentReceived(text="lo"),
            ENDED,
        )

        assert len(transcript) == 3
        assert transcript[-1] == Message(role=Role.ASSISTANT, content="Hello")

    def test_fragment_does_not_extend_finalized_reply(self):
        """A finished reply from an earlier turn is never appended to."""
        transcript = _fold(
            (GREETING,),
            UserSubmitted(text="one"),
            FragmentReceived(text="first"),
            ENDED,
            UserSubmitted(text="two"),
            FragmentReceived(text="second"),
        )

        assert [m.content for m in transcript] == ["Hello there!", "one", "first", "two", "second"]

    def test_fragment_directly_after_greeting_starts_new_message(self):
        transcript = reduce_transcript((GREETING,), FragmentReceived(text="x"))

        assert transcript[0] == GREETING
        assert transcript[1].content == "x"

    @given(st.lists(st.text(), min_size=1, max_size=20))
    def test_reply_is_concatenation_of_fragments(self, fragments: list[str]):
        """Property test: the reply equals the fragments joined, with one pending tail."""
        transcript = _fold((GREETING,), UserSubmitted(text="q"))
        for piece in fragments:
            transcript = reduce_transcript(transcript, FragmentReceived(text=piece))

        assert len(transcript) == 3
        assert transcript[-1].content == "".join(fragments)
        assert [m.pending for m in transcript] == [False, False, True]


class TestStreamEnded:
    """Tests for finishing a turn."""

    def test_finalizes_pending_reply(self):
        transcript = _fold((GREETING,), UserSubmitted(text="q"), FragmentReceived(text="a"), ENDED)
        assert not any(m.pending for m in transcript)

    def test_without_fragments_appends_empty_reply(self):
        """A stream that closes without text still answers the turn."""
        transcript = _fold((GREETING,), UserSubmitted(text="q"), ENDED)

        assert len(transcript) == 3
        assert transcript[-1] == Message(role=Role.ASSISTANT, content="No answer this time.")

    def test_empty_fragments_are_replaced_by_empty_reply(self):
        transcript = _fold((GREETING,), UserSubmitted(text="q"), FragmentReceived(text=""), ENDED)

        assert len(transcript) == 3
        assert transcript[-1] == Message(role=Role.ASSISTANT, content="No answer this time.")


class TestStreamFailed:
    """Tests for failed turns."""

    def test_appends_error_when_turn_has_no_reply(self):
        transcript = _fold(
            (GREETING,),
            UserSubmitted(text="q"),
            StreamFailed(kind=FailureKind.STREAM, message="Error: nope"),
        )

        assert len(transcript) == 3
        assert transcript[-1] == Message(role=Role.ASSISTANT, content="Error: nope")

    def test_keeps_existing_reply_without_duplicate(self):
        transcript = _fold(
            (GREETING,),
            UserSubmitted(text="q"),
            FragmentReceived(text="partial"),
            FragmentReceived(text="\n\nError: boom"),
            StreamFailed(kind=FailureKind.STREAM, message="Error: nope"),
        )

        assert len(transcript) == 3
        assert transcript[-1] == Message(role=Role.ASSISTANT, content="partial\n\nError: boom")

    def test_replaces_empty_pending_reply(self):
        transcript = (
            GREETING,
            Message(role=Role.USER, content="q"),
            Message(role=Role.ASSISTANT, content="", pending=True),
        )
        transcript = reduce_transcript(
            transcript, StreamFailed(kind=FailureKind.SESSION_INVALID, message="Oops")
        )

        assert len(transcript) == 3
        assert transcript[-1] == Message(role=Role.ASSISTANT, content="Oops")

    def test_previous_turn_reply_does_not_count(self):
        """The error is appended even though the message before the user's is a reply."""
        transcript = _fold(
            (GREETING,),
            UserSubmitted(text="q"),
            StreamFailed(kind=FailureKind.SESSION_CREATION, message="No chat"),
        )
        assert [m.role for m in transcript] == [Role.ASSISTANT, Role.USER, Role.ASSISTANT]


class TestConversationSeeded:
    """Tests for starting over."""

    def test_replaces_whole_transcript(self):
        transcript = _fold((GREETING,), UserSubmitted(text="q"), FragmentReceived(text="a"))
        transcript = reduce_transcript(transcript, ConversationSeeded(text="Chat cleared!"))

        assert transcript == (Message(role=Role.ASSISTANT, content="Chat cleared!"),)

    def test_seeds_empty_transcript(self):
        assert reduce_transcript((), ConversationSeeded(text="Hi")) == (
            Message(role=Role.ASSISTANT, content="Hi"),
        )


def test_unknown_event_raises_type_error():
    with pytest.raises(TypeError, match="Unknown transcript event"):
        reduce_transcript((), "not an event")  # type: ignore


def test_messages_are_immutable():
    with pytest.raises(ValueError):
        GREETING.content = "changed"  # type: ignore
