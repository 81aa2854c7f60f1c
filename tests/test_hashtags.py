from __future__ import annotations

import unittest

from hashtag_board.hashtags import (
    HASHTAG_MAX_COUNT,
    HASHTAG_MAX_LENGTH,
    check_custom_hashtag,
    extract_hashtags,
    merge_hashtags,
    normalize_hashtag,
    normalize_hashtags,
    process_hashtags_from_text,
    split_hashtag_segments,
    validate_hashtag,
    validate_hashtags,
)


class TestExtractHashtags(unittest.TestCase):
    def test_extracts_japanese_hashtags(self) -> None:
        text = "今日は文化祭で楽しかった！ #文化祭 #楽しい #感想"
        self.assertEqual(extract_hashtags(text), ["文化祭", "楽しい", "感想"])

    def test_lowercases_ascii_and_keeps_cjk(self) -> None:
        text = "Great festival! #festival #文化祭 #Fun #楽しい"
        self.assertEqual(extract_hashtags(text), ["festival", "文化祭", "fun", "楽しい"])

    def test_stops_at_ascii_and_full_width_punctuation(self) -> None:
        text = "#tag1,#tag2.#tag3！#タグ。おわり #括弧（注） [#sq] 「#鉤」"
        self.assertEqual(
            extract_hashtags(text),
            ["tag1", "tag2", "tag3", "タグ", "括弧", "sq", "鉤"],
        )

    def test_adjacent_markers_split_tokens(self) -> None:
        self.assertEqual(extract_hashtags("#a#b##c"), ["a", "b", "c"])

    def test_full_width_space_ends_a_tag(self) -> None:
        self.assertEqual(extract_hashtags("#タグ　続き"), ["タグ"])

    def test_dedupes_keeping_first_occurrence(self) -> None:
        self.assertEqual(extract_hashtags("#Tag #tag #other #TAG"), ["tag", "other"])

    def test_lone_marker_is_ignored(self) -> None:
        self.assertEqual(extract_hashtags("# nothing here #"), [])

    def test_length_is_not_enforced(self) -> None:
        long_tag = "x" * (HASHTAG_MAX_LENGTH + 10)
        self.assertEqual(extract_hashtags(f"#{long_tag}"), [long_tag])

    def test_non_string_input_is_empty(self) -> None:
        self.assertEqual(extract_hashtags(None), [])
        self.assertEqual(extract_hashtags(123), [])
        self.assertEqual(extract_hashtags(""), [])

    def test_results_are_unique_and_non_empty(self) -> None:
        samples = [
            "#a #A #b #a",
            "#文化祭#文化祭 #ＡＢＣ #abc",
            "##  #\t# x #y!",
        ]
        for text in samples:
            tags = extract_hashtags(text)
            self.assertEqual(len(tags), len(set(tags)), msg=text)
            self.assertTrue(all(len(t) > 0 for t in tags), msg=text)


class TestNormalize(unittest.TestCase):
    def test_normalize_hashtag(self) -> None:
        self.assertEqual(normalize_hashtag("  #Hello  "), "hello")
        self.assertEqual(normalize_hashtag("日本語ABC123"), "日本語abc123")
        self.assertEqual(normalize_hashtag("ÄBC"), "Äbc")
        self.assertEqual(normalize_hashtag("ＡＢＣ"), "ＡＢＣ")
        self.assertEqual(normalize_hashtag("#"), "")
        self.assertEqual(normalize_hashtag("   "), "")

    def test_normalize_hashtag_non_string(self) -> None:
        self.assertEqual(normalize_hashtag(None), "")
        self.assertEqual(normalize_hashtag(42), "")
        self.assertEqual(normalize_hashtag(["a"]), "")

    def test_normalize_hashtags_drops_empty_and_duplicates(self) -> None:
        values = ["#A", "a", " b ", None, "", 3, "#", "B", "文化祭"]
        self.assertEqual(normalize_hashtags(values), ["a", "b", "文化祭"])

    def test_normalize_hashtags_non_list(self) -> None:
        self.assertEqual(normalize_hashtags("abc"), [])
        self.assertEqual(normalize_hashtags(None), [])
        self.assertEqual(normalize_hashtags({"a": 1}), [])

    def test_normalize_hashtags_is_idempotent(self) -> None:
        samples = [
            ["#Foo", "foo", "Bar"],
            ["# spaced", "##double", "  #Mixed日本 "],
            ["", None, 7, "ok"],
            [],
        ]
        for values in samples:
            once = normalize_hashtags(values)
            self.assertEqual(normalize_hashtags(once), once, msg=repr(values))

    def test_merge_hashtags_puts_extracted_first(self) -> None:
        self.assertEqual(merge_hashtags(["a"], ["#A", "b"]), ["a", "b"])
        self.assertEqual(merge_hashtags(None, ["X"]), ["x"])


class TestValidateHashtags(unittest.TestCase):
    def test_too_many_hashtags(self) -> None:
        result = validate_hashtags(["tag"] * (HASHTAG_MAX_COUNT + 1))
        self.assertFalse(result.is_valid)
        self.assertIn("At most 10 hashtags are allowed", result.errors)

    def test_too_long_hashtag(self) -> None:
        result = validate_hashtags(["a" * 51])
        self.assertFalse(result.is_valid)
        self.assertEqual(list(result.errors), ["Hashtag 1 must be at most 50 characters"])

    def test_limits_are_inclusive(self) -> None:
        result = validate_hashtags(["a" * 50] * 10)
        self.assertTrue(result.is_valid)
        self.assertEqual(list(result.errors), [])

    def test_collects_every_error(self) -> None:
        values = ["ok", 5, "", "x" * 60] + ["t"] * 8
        result = validate_hashtags(values)
        self.assertFalse(result.is_valid)
        self.assertEqual(
            list(result.errors),
            [
                "At most 10 hashtags are allowed",
                "Hashtag 2 must be a string",
                "Hashtag 3 cannot be empty",
                "Hashtag 4 must be at most 50 characters",
            ],
        )

    def test_non_list_is_invalid(self) -> None:
        for value in ("abc", None, 12):
            result = validate_hashtags(value)
            self.assertFalse(result.is_valid)
            self.assertEqual(list(result.errors), ["Hashtags must be a list"])

    def test_empty_list_is_valid(self) -> None:
        self.assertTrue(validate_hashtags([]).is_valid)

    def test_custom_limits(self) -> None:
        result = validate_hashtags(["abcd", "ab"], max_count=1, max_length=3)
        self.assertEqual(
            list(result.errors),
            [
                "At most 1 hashtags are allowed",
                "Hashtag 1 must be at most 3 characters",
            ],
        )


class TestValidateSingleHashtag(unittest.TestCase):
    def test_valid(self) -> None:
        result = validate_hashtag("ok")
        self.assertTrue(result.is_valid)
        self.assertIsNone(result.error)

    def test_invalid(self) -> None:
        self.assertEqual(validate_hashtag("").error, "Hashtag cannot be empty")
        self.assertEqual(validate_hashtag(None).error, "Hashtag must be a string")
        self.assertEqual(
            validate_hashtag("a" * 51).error,
            "Hashtag must be at most 50 characters",
        )

    def test_custom_hashtag_blank_is_silent(self) -> None:
        result = check_custom_hashtag("   ", [], [])
        self.assertFalse(result.is_valid)
        self.assertIsNone(result.error)

    def test_custom_hashtag_duplicates(self) -> None:
        selected = ["foo"]
        extracted = ["bar"]
        self.assertEqual(
            check_custom_hashtag(" foo ", selected, extracted).error,
            "This hashtag is already selected",
        )
        self.assertEqual(
            check_custom_hashtag("bar", selected, extracted).error,
            "This hashtag is already extracted from the text",
        )

    def test_custom_hashtag_total_cap(self) -> None:
        selected = [f"s{i}" for i in range(5)]
        extracted = [f"e{i}" for i in range(5)]
        result = check_custom_hashtag("new", selected, extracted)
        self.assertFalse(result.is_valid)
        self.assertEqual(result.error, "At most 10 hashtags are allowed")

        self.assertTrue(check_custom_hashtag("new", selected[:4], extracted).is_valid)

    def test_custom_hashtag_length(self) -> None:
        result = check_custom_hashtag("x" * 51)
        self.assertFalse(result.is_valid)
        self.assertEqual(result.error, "Hashtag must be at most 50 characters")


class TestProcessAndSegments(unittest.TestCase):
    def test_process_hashtags_from_text(self) -> None:
        result = process_hashtags_from_text("Hi #One #two #One")
        self.assertEqual(list(result.hashtags), ["one", "two"])
        self.assertTrue(result.is_valid)
        self.assertEqual(list(result.errors), [])

    def test_process_reports_too_many(self) -> None:
        text = " ".join(f"#t{i}" for i in range(11))
        result = process_hashtags_from_text(text)
        self.assertEqual(len(result.hashtags), 11)
        self.assertFalse(result.is_valid)

    def test_process_never_raises_on_bad_input(self) -> None:
        result = process_hashtags_from_text(None)
        self.assertEqual(list(result.hashtags), [])
        self.assertTrue(result.is_valid)

    def test_split_segments(self) -> None:
        text = "Hi #文化祭! and #Fun"
        segments = split_hashtag_segments(text)

        self.assertEqual("".join(s.text for s in segments), text)
        self.assertEqual(
            [(s.text, s.hashtag) for s in segments],
            [
                ("Hi ", None),
                ("#文化祭", "文化祭"),
                ("! and ", None),
                ("#Fun", "Fun"),
            ],
        )
        self.assertTrue(segments[1].is_hashtag)
        self.assertFalse(segments[0].is_hashtag)

    def test_split_segments_without_hashtags(self) -> None:
        self.assertEqual([s.text for s in split_hashtag_segments("plain")], ["plain"])
        self.assertEqual(split_hashtag_segments(None), [])


if __name__ == "__main__":
    unittest.main()
