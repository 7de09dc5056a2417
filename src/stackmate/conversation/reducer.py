"""Pure merge rule for folding turn events into a transcript."""

from .models import (
    ConversationSeeded,
    FragmentReceived,
    Message,
    Role,
    StreamEnded,
    StreamFailed,
    Transcript,
    TranscriptEvent,
    UserSubmitted,
)


def _finalize_tail(transcript: Transcript) -> Transcript:
    if transcript and transcript[-1].pending:
        return transcript[:-1] + (transcript[-1].model_copy(update={"pending": False}),)
    return transcript


def _has_reply(transcript: Transcript) -> bool:
    return bool(transcript) and transcript[-1].is_pending_reply and bool(transcript[-1].content)


def _finalize_or_reply(transcript: Transcript, fallback: str) -> Transcript:
    if _has_reply(transcript):
        return _finalize_tail(transcript)
    # An empty pending reply is replaced by the fallback message
    if transcript and transcript[-1].is_pending_reply:
        transcript = transcript[:-1]
    return transcript + (Message(role=Role.ASSISTANT, content=fallback),)


def reduce_transcript(transcript: Transcript, event: TranscriptEvent) -> Transcript:
    """Apply one event and return the new transcript.

    Rules:
    - UserSubmitted appends a finalized user message.
    - FragmentReceived extends the pending assistant reply at the tail,
      or starts one if this turn has none yet.
    - StreamEnded finalizes the pending reply, or appends the empty-reply
      message if the stream produced no text.
    - StreamFailed finalizes the pending reply if it has content, otherwise
      appends the failure message as the reply for this turn.
    - ConversationSeeded replaces everything with one assistant message.

    The input transcript is never modified.
    """
    if isinstance(event, UserSubmitted):
        return _finalize_tail(transcript) + (Message(role=Role.USER, content=event.text),)

    if isinstance(event, FragmentReceived):
        if transcript and transcript[-1].is_pending_reply:
            tail = transcript[-1]
            return transcript[:-1] + (tail.model_copy(update={"content": tail.content + event.text}),)
        return transcript + (Message(role=Role.ASSISTANT, content=event.text, pending=True),)

    if isinstance(event, StreamEnded):
        return _finalize_or_reply(transcript, event.empty_reply)

    if isinstance(event, StreamFailed):
        return _finalize_or_reply(transcript, event.message)

    if isinstance(event, ConversationSeeded):
        return (Message(role=Role.ASSISTANT, content=event.text),)

    raise TypeError(f"Unknown transcript event: {type(event).__name__}")
