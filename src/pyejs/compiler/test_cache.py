"""Tests for the compiled-template cache."""

from pyejs.compiler.cache import TemplateCache


def test_set_get_remove():
    cache = TemplateCache()
    fn = object()

    assert cache.get("/a.ejs") is None
    cache.set("/a.ejs", fn)
    assert cache.get("/a.ejs") is fn
    assert "/a.ejs" in cache
    assert len(cache) == 1

    cache.remove("/a.ejs")
    cache.remove("/never-added.ejs")
    assert "/a.ejs" not in cache


def test_reset():
    cache = TemplateCache()
    cache.set("/a.ejs", object())
    cache.set("/b.ejs", object())

    cache.reset()

    assert len(cache) == 0
    assert cache.get("/b.ejs") is None
