"""Tests for diff packing."""

from gh_context.context.diff_packer import pack_diff, parse_per_file_diffs
from gh_context.context.tokens import TokenBudget


def file_diff(name: str, lines: list[str]) -> str:
    return "\n".join([f"diff --git a/{name} b/{name}", *lines])


def make_budget(remaining: int) -> TokenBudget:
    return TokenBudget(model_max_token_limit=remaining, max_completion_tokens=0)


class TestParsePerFileDiffs:
    """Test parse_per_file_diffs function."""

    def test_splits_on_headers(self) -> None:
        diff = "\n".join(
            [file_diff("a.py", ["+one"]), file_diff("b.py", ["+two", "-three"])]
        )
        files = parse_per_file_diffs(diff)

        assert [f.filename for f in files] == ["a.py", "b.py"]
        assert [f.position for f in files] == [0, 1]
        assert files[0].content == "diff --git a/a.py b/a.py\n+one"
        assert files[1].content.startswith("diff --git a/b.py b/b.py")

    def test_renamed_file_uses_old_path(self) -> None:
        files = parse_per_file_diffs("diff --git a/old.py b/new.py\nsimilarity 90%")
        assert files[0].filename == "old.py"

    def test_no_headers(self) -> None:
        assert parse_per_file_diffs("") == []
        assert parse_per_file_diffs("just text") == []


class TestPackDiff:
    """Test pack_diff function."""

    def test_everything_fits_in_original_order(self, word_count) -> None:
        first = file_diff("big.py", ["+line"] * 20)
        second = file_diff("small.py", ["+x"])
        raw = first + "\n" + second
        budget = make_budget(1000)

        packed = pack_diff(raw, budget, word_count)

        assert packed is not None
        assert packed.text == raw
        assert packed.included == ["big.py", "small.py"]
        assert packed.omitted == []
        assert packed.tokens == word_count(raw)
        assert budget.running_token_count == packed.tokens

    def test_zero_budget_returns_none(self, word_count) -> None:
        budget = TokenBudget(model_max_token_limit=100, max_completion_tokens=100)

        assert pack_diff(file_diff("a.py", ["+x"]), budget, word_count) is None
        assert budget.running_token_count == 0

    def test_reserve_is_kept_free(self, word_count) -> None:
        raw = file_diff("a.py", ["+x"])

        budget = make_budget(10)
        assert pack_diff(raw, budget, word_count, reserve=5) is None
        assert budget.running_token_count == 0

        packed = pack_diff(raw, budget, word_count, reserve=2)
        assert packed is not None
        assert budget.running_token_count == word_count(raw)

    def test_large_file_skipped_small_file_kept(self, word_count) -> None:
        large = file_diff("a.py", ["+x"] * 1000)
        small = file_diff("b.py", ["+line one", "+line two", "+line three"])
        budget = make_budget(50)

        packed = pack_diff(large + "\n" + small, budget, word_count)

        assert packed is not None
        assert packed.text == small
        assert packed.included == ["b.py"]
        assert packed.omitted == ["a.py"]
        assert budget.running_token_count == word_count(small)
        assert budget.tokens_remaining >= 0

    def test_exact_count_evicts_largest_estimate(self) -> None:
        small = file_diff("small.py", ["+x"])
        big = file_diff("big.py", ["+y"] * 30)
        budget = make_budget(50)

        def count(text: str) -> int:
            return 100 if "big.py" in text else 1

        packed = pack_diff(big + "\n" + small, budget, count)

        assert packed is not None
        assert packed.included == ["small.py"]
        assert packed.omitted == ["big.py"]
        assert packed.tokens == 1
        assert budget.running_token_count == 1

    def test_nothing_survives_exact_count(self) -> None:
        budget = make_budget(50)

        packed = pack_diff(file_diff("a.py", ["+x"]), budget, lambda text: 51)

        assert packed is None
        assert budget.running_token_count == 0

    def test_empty_diff(self, word_count) -> None:
        budget = make_budget(50)
        assert pack_diff(None, budget, word_count) is None
        assert pack_diff("", budget, word_count) is None
