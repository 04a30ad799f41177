"""Async rendering: awaitable fragments, ordering and includes."""

import asyncio

import pytest

import pyejs
from pyejs import Compiler, DictLoader, TemplateRuntimeError


async def delayed(value, delay=0):
    await asyncio.sleep(delay)
    return value


def test_render_async_returns_awaitable():
    result = pyejs.render_async("Hello, <%= name %>!", {"name": "World"})

    assert asyncio.run(result) == "Hello, World!"


def test_output_keeps_emission_order():
    """Fragments are joined in source order, not completion order."""
    template = "<%= slow('a', 0.05) %><%- slow('b', 0.01) %><%= slow('<c>', 0) %>"

    out = asyncio.run(pyejs.render_async(template, {"slow": delayed}))

    assert out == "ab&lt;c&gt;"


def test_await_in_statements():
    template = "<% value = await fetch('x') %><%= value %>"

    assert asyncio.run(pyejs.render_async(template, {"fetch": delayed})) == "x"


def test_async_option_on_compile():
    fn = pyejs.compile("<%= fetch(1) %>", {"async": True})

    assert fn.is_async
    assert asyncio.run(fn({"fetch": delayed})) == "1"


def test_async_include():
    compiler = Compiler(
        loader=DictLoader({"/child.ejs": "<%= await fetch(v) %>!"})
    )
    template = '[<%- include("/child.ejs", {"v": "x"}) %>]'

    out = asyncio.run(compiler.render_async(template, {"fetch": delayed}))

    assert out == "[x!]"


def test_none_fragments_are_skipped():
    out = asyncio.run(pyejs.render_async("a<%- fetch(None) %>b", {"fetch": delayed}))

    assert out == "ab"


def test_async_errors_are_annotated():
    async def fail():
        raise ValueError("boom")

    with pytest.raises(ValueError, match="boom") as exc:
        asyncio.run(pyejs.render_async("<% await fail() %>", {"fail": fail}, filename="/a.ejs"))

    assert str(exc.value).startswith("/a.ejs:1\n")


def test_awaitable_in_sync_template():
    with pytest.raises(TemplateRuntimeError, match="async=True"):
        pyejs.render("<%= fetch('x') %>", {"fetch": delayed})
