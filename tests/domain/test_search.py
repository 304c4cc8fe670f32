"""Tests for bootpedia.domain.search."""

from datetime import UTC, datetime, timedelta

import pytest

from bootpedia.domain.difficulty import Difficulty
from bootpedia.domain.models import SearchFilters, Tutorial
from bootpedia.domain.search import age_in_days, run_search, search

NOW = datetime(2024, 6, 1, 12, tzinfo=UTC)


def tutorial(tid, *, title="Untitled", age_days=0, difficulty=Difficulty.BEGINNER, **kwargs):
    defaults = dict(
        description="No description",
        content="",
        category="general",
        author="Unknown author",
        views=0,
        estimated_time=5,
    )
    defaults.update(kwargs)
    created = NOW - timedelta(days=age_days)
    return Tutorial(
        id=tid,
        title=title,
        created_at=created,
        updated_at=created,
        difficulty=difficulty,
        **defaults,
    )


@pytest.fixture
def tutorials():
    return [
        tutorial("t1", title="Fix GRUB", category="boot", tags=("Linux", "grub2"), age_days=1),
        tutorial("t2", title="Recover files", category="data-recovery", author="Bruno",
                 difficulty=Difficulty.INTERMEDIATE, keywords=("photorec",), age_days=10),
        tutorial("t3", title="Clone a disk", category="backup", description="Use Clonezilla",
                 difficulty=Difficulty.ADVANCED, tags=("clonezilla",), age_days=100),
        tutorial("t4", title="Reset password", category="password", difficulty=Difficulty.ADVANCED,
                 age_days=400),
    ]


def ids(result):
    return [t.id for t in result]


class TestTextQuery:
    def test_empty_query_is_identity(self, tutorials):
        assert search(tutorials, "", {}, now=NOW) == tutorials
        assert search(tutorials, None, None, now=NOW) == tutorials
        assert search(tutorials, "   ", now=NOW) == tutorials

    @pytest.mark.parametrize(
        "query, expected",
        [
            ("grub", ["t1"]),          # title
            ("CLONEZILLA", ["t3"]),    # description and tag
            ("bruno", ["t2"]),         # author
            ("linux", ["t1"]),         # tag
            ("photo", ["t2"]),         # keyword
            ("nothing-matches", []),
        ],
    )
    def test_matches_fields(self, tutorials, query, expected):
        assert ids(search(tutorials, query, now=NOW)) == expected


class TestFilters:
    def test_category_exact(self, tutorials):
        assert ids(search(tutorials, filters={"category": "boot"}, now=NOW)) == ["t1"]
        assert search(tutorials, filters={"category": "bo"}, now=NOW) == []

    def test_difficulty_exact(self, tutorials):
        result = search(tutorials, filters=SearchFilters(difficulty="Advanced"), now=NOW)
        assert ids(result) == ["t3", "t4"]
        assert all(t.difficulty is Difficulty.ADVANCED for t in result)

    @pytest.mark.parametrize("label", ["advanced", "Avançado", "  EXPERT ", Difficulty.ADVANCED])
    def test_difficulty_filter_is_canonicalized(self, tutorials, label):
        assert ids(search(tutorials, filters={"difficulty": label}, now=NOW)) == ["t3", "t4"]

    def test_unknown_difficulty_label_means_beginner(self, tutorials):
        result = search(tutorials, filters={"difficulty": "bogus"}, now=NOW)
        assert result
        assert all(t.difficulty is Difficulty.BEGINNER for t in result)

    def test_blank_difficulty_matches_everything(self, tutorials):
        assert len(search(tutorials, filters={"difficulty": "  "}, now=NOW)) == len(tutorials)

    def test_tags_any_substring(self, tutorials):
        assert ids(search(tutorials, filters={"tags": ["GRUB"]}, now=NOW)) == ["t1"]
        assert ids(search(tutorials, filters={"tags": ["zilla", "linux"]}, now=NOW)) == ["t1", "t3"]

    @pytest.mark.parametrize(
        "time_range, expected",
        [
            ("week", ["t1"]),
            ("month", ["t1", "t2"]),
            ("year", ["t1", "t2", "t3"]),
            ("decade", ["t1", "t2", "t3", "t4"]),
            (None, ["t1", "t2", "t3", "t4"]),
        ],
    )
    def test_time_range(self, tutorials, time_range, expected):
        assert ids(search(tutorials, filters={"timeRange": time_range}, now=NOW)) == expected

    def test_week_boundary_is_inclusive(self):
        edge = tutorial("edge", age_days=7.5)
        assert age_in_days(edge, NOW) == 7
        assert ids(search([edge], filters={"time_range": "week"}, now=NOW)) == ["edge"]

    def test_predicates_are_anded(self, tutorials):
        result = search(tutorials, "clone", {"difficulty": "Advanced", "time_range": "year"}, now=NOW)
        assert ids(result) == ["t3"]


class TestRunSearch:
    def test_wraps_result(self, tutorials):
        result = run_search(tutorials, "", {"difficulty": "Advanced"}, now=NOW)
        assert result.total == 2
        assert [t.id for t in result.tutorials] == ["t3", "t4"]
        assert result.filters == SearchFilters(difficulty="Advanced")

    def test_input_not_mutated(self, tutorials):
        before = list(tutorials)
        run_search(tutorials, "grub", now=NOW)
        assert tutorials == before
