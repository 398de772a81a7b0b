"""Tests for sqla_scope.testing._loaders — CountingLoader."""

from __future__ import annotations

from sqla_scope.testing._loaders import CountingLoader
from tests.conftest import Comment


class TestCountingLoader:
    def test_counts_per_edge(self, session, sample_data):
        session.expunge_all()
        comment = session.get(Comment, 1)
        loader = CountingLoader()

        post = loader(comment, "post")
        loader(post, "user")
        loader(post, "user")

        assert post.id == 1
        assert loader.counts[("Comment", "post")] == 1
        assert loader.counts[("Post", "user")] == 2
        assert loader.total == 3

    def test_wraps_inner_loader(self):
        calls = []

        def inner(instance, relation):
            calls.append(relation)
            return relation.upper()

        loader = CountingLoader(inner)
        assert loader(object(), "post") == "POST"
        assert calls == ["post"]
        assert loader.counts[("object", "post")] == 1

    def test_starts_empty(self):
        assert CountingLoader().total == 0
