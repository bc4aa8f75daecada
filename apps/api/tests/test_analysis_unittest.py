import json
import unittest

from devil_muse.services.analysis import AnalysisParseError, parse_markers, strip_code_fences


MARKERS = [
    {"icon": "🗡", "type": "Word Repetition", "message": "'suddenly' x8", "detail": "Paragraph 2 onward."},
    {"icon": "🩸", "type": "Crutch Verb", "message": "'felt' x12", "detail": "Show, do not tell."},
]


class StripCodeFencesTestCase(unittest.TestCase):
    def test_removes_json_and_bare_fences(self) -> None:
        self.assertEqual(strip_code_fences("```json\n[1]\n```"), "[1]")
        self.assertEqual(strip_code_fences("```\n[]\n```  "), "[]")
        self.assertEqual(strip_code_fences("```JSON\n[]```"), "[]")
        self.assertEqual(strip_code_fences("[]"), "[]")


class ParseMarkersTestCase(unittest.TestCase):
    def test_fenced_array_parses_unchanged(self) -> None:
        raw = "```json\n" + json.dumps(MARKERS, ensure_ascii=False) + "\n```"
        self.assertEqual(parse_markers(raw), MARKERS)

    def test_plain_array_parses(self) -> None:
        self.assertEqual(parse_markers(json.dumps(MARKERS)), MARKERS)

    def test_prose_response_raises_parse_error(self) -> None:
        with self.assertRaises(AnalysisParseError) as ctx:
            parse_markers("Here is my analysis: it was fine.", error_message="Failed to parse pacing analysis")
        self.assertEqual(str(ctx.exception), "Failed to parse pacing analysis")

    def test_wrong_shape_raises_parse_error(self) -> None:
        with self.assertRaises(AnalysisParseError):
            parse_markers('{"icon": "x", "type": "y", "message": "z", "detail": "w"}')
        with self.assertRaises(AnalysisParseError):
            parse_markers('[{"icon": "x", "type": "y"}]')
        with self.assertRaises(AnalysisParseError):
            parse_markers('["just a string"]')

    def test_fences_inside_field_values_are_kept(self) -> None:
        markers = [{"icon": "🧾", "type": "Formatting", "message": "Code", "detail": "use ```json blocks"}]
        raw = "```json\n" + json.dumps(markers) + "\n```"
        self.assertEqual(parse_markers(raw), markers)
        self.assertEqual(strip_code_fences('["a ``` b"]'), '["a ``` b"]')

    def test_empty_array_is_valid(self) -> None:
        self.assertEqual(parse_markers("```json\n[]\n```"), [])


if __name__ == "__main__":
    unittest.main()
