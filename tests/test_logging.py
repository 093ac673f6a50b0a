import asyncio
import logging

from app.core.logging import ContextFilter, DevelopmentFormatter, LogContext


def make_record(message):
    record = logging.LogRecord("printquote.test", logging.INFO, __file__, 1, message, None, None)
    ContextFilter().filter(record)
    return record


def test_nested_context_restores_outer_fields():
    with LogContext(user_id="u1"):
        with LogContext(quotation_id="q1"):
            inner = make_record("inner")
        outer = make_record("outer")
    after = make_record("after")

    assert (inner.user_id, inner.quotation_id) == ("u1", "q1")
    assert outer.user_id == "u1" and not hasattr(outer, "quotation_id")
    assert not hasattr(after, "user_id")


def test_concurrent_tasks_keep_their_own_context():
    seen = {}

    async def work(user_id):
        with LogContext(user_id=user_id):
            await asyncio.sleep(0)
            seen[user_id] = make_record("working").user_id

    async def main():
        await asyncio.gather(work("a"), work("b"))

    asyncio.run(main())
    assert seen == {"a": "a", "b": "b"}


def test_tokens_are_masked():
    output = DevelopmentFormatter().format(make_record("Authorization: Bearer abc.def.ghi"))
    assert "abc.def.ghi" not in output
    assert "Bearer ***" in output
