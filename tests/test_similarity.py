import pytest

from autoapply.core.similarity import (
    contains_phrase,
    family_score,
    find_best_option,
    is_placeholder_option,
    string_similarity,
)


class TestStringSimilarity:
    def test_exact_match_ignores_case_and_whitespace(self):
        assert string_similarity("  Male ", "male") == 1.0

    def test_containment_scores_point_eight(self):
        assert string_similarity("Computer Science", "B.S. in Computer Science") == pytest.approx(0.8)

    def test_empty_string_scores_zero(self):
        assert string_similarity("", "anything") == 0.0

    def test_result_is_bounded(self):
        for a, b in [("abc", "xyz"), ("Engineer", "Engineering"), ("yes", "no")]:
            assert 0.0 <= string_similarity(a, b) <= 1.0

    def test_black_family_boost(self):
        assert string_similarity("Black or African American", "Black") >= 0.9

    def test_not_veteran_family(self):
        score = string_similarity(
            "I am not a protected veteran",
            "No, I am not a veteran",
        )
        assert score >= 0.95

    def test_no_disability_family(self):
        score = string_similarity(
            "No, I do not have a disability",
            "No, I don't have a disability and have not had one in the past",
        )
        assert score >= 0.95

    def test_only_identical_strings_score_one(self):
        assert string_similarity("I am a protected veteran", "I am not a protected veteran") < 1.0
        assert string_similarity("Black", "Black or African American") < 1.0

    def test_family_only_raises(self):
        # "Yes" vs "Yes, I am authorized" already scores 0.8 by containment
        assert string_similarity("Yes", "Yes, I am authorized") >= 0.8

    def test_negated_veteran_is_not_veteran_family(self):
        assert family_score("i am a protected veteran", "i am not a protected veteran") < 0.95

    def test_female_does_not_count_as_male(self):
        assert family_score("male", "female") == 0.0


class TestFindBestOption:
    def test_exact_option(self):
        match = find_best_option(["Male", "Female", "Prefer not to say"], "Male")
        assert match == ("Male", 1.0)

    def test_placeholders_are_skipped(self):
        match = find_best_option(["Select...", "Yes", "No"], "select")
        assert match is None or match.option != "Select..."

    def test_prefix_scores_point_nine(self):
        match = find_best_option(["Bachelor's Degree", "Master's Degree"], "Bachelor")
        assert match.option == "Bachelor's Degree"
        assert match.score >= 0.9

    def test_below_threshold_returns_none(self):
        assert find_best_option(["Alpha", "Beta"], "zzzz") is None

    def test_empty_inputs(self):
        assert find_best_option([], "Male") is None
        assert find_best_option(["Male"], "") is None
        assert find_best_option(None, "Male") is None

    def test_first_option_wins_ties(self):
        match = find_best_option(["Yes", "yes"], "YES")
        assert match.option == "Yes"

    def test_race_option(self):
        options = ["Asian", "Black or African American", "White", "Decline to self-identify"]
        match = find_best_option(options, "Black or African American")
        assert match.option == "Black or African American"

    def test_disability_option(self):
        options = [
            "Yes, I have a disability (or previously had a disability)",
            "No, I do not have a disability",
            "I do not want to answer",
        ]
        match = find_best_option(options, "No, I do not have a disability")
        assert match.option == "No, I do not have a disability"

    def test_exact_option_beats_full_overlap_distractor(self):
        options = ["I am a protected veteran", "I am not a protected veteran"]
        match = find_best_option(options, "I am not a protected veteran")
        assert match == ("I am not a protected veteran", 1.0)

    def test_exact_option_ignores_case_and_whitespace(self):
        options = ["Yes, I am authorized", "  yes "]
        assert find_best_option(options, "YES").option == "  yes "


def test_is_placeholder_option():
    assert is_placeholder_option("Select...")
    assert is_placeholder_option("  -- ")
    assert is_placeholder_option("")
    assert not is_placeholder_option("Yes")


def test_contains_phrase_respects_word_boundaries():
    assert contains_phrase("My answer is No.", "No")
    assert not contains_phrase("Nonbinary", "No")
    assert not contains_phrase("None of the above", "No")
