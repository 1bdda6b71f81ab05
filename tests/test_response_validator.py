"""
Tests for the response validator.
"""

import json

from generation.response_validator import DIAGNOSTIC_TITLE, parse_sections, sections_or_diagnostic


class TestAcceptedShapes:

    def test_envelope_keeps_ids_and_order(self):
        raw = json.dumps({"sections": [
            {"id": "a", "title": "A", "content": "<p>x</p>"},
            {"id": "b", "title": "B", "content": "<p>y</p>"},
        ]})

        result = parse_sections(raw)

        assert result.kind == "valid"
        assert [(s.id, s.title, s.content) for s in result.sections] == [
            ("a", "A", "<p>x</p>"),
            ("b", "B", "<p>y</p>"),
        ]

    def test_bare_array_without_ids(self):
        raw = json.dumps([
            {"title": "ATP", "content": "<table></table>"},
            {"title": "Prota", "content": "<p>prota</p>"},
        ])

        result = parse_sections(raw)

        assert result.kind == "valid"
        assert [s.title for s in result.sections] == ["ATP", "Prota"]
        assert all(s.id is None for s in result.sections)


class TestRecovery:

    def test_markdown_fences_and_prose(self):
        raw = (
            "Berikut hasilnya:\n```json\n"
            '{"sections": [{"id": "naskah_soal", "title": "Naskah Soal", "content": "<ol></ol>"}]}'
            "\n```\nSemoga membantu."
        )

        result = parse_sections(raw)

        assert result.kind == "valid"
        assert result.sections[0].id == "naskah_soal"

    def test_truncated_payload_is_repaired(self):
        raw = '{"sections": [{"id": "a", "title": "Modul Ajar", "content": "<p>Langkah 1</p>"}, {"id": "b", "title": "KKTP", "content": "<p>Kri'

        result = parse_sections(raw)

        assert result.kind == "valid"
        assert result.sections[0].title == "Modul Ajar"

    def test_array_inside_prose(self):
        raw = 'Output: [{"title": "Ringkasan", "content": "<p>isi</p>"}] selesai'

        result = parse_sections(raw)

        assert result.kind == "valid"
        assert result.sections[0].title == "Ringkasan"


class TestDiagnostic:

    def test_plain_text_becomes_one_diagnostic_section(self):
        raw = "Maaf, saya tidak dapat membantu permintaan ini."

        result = parse_sections(raw)

        assert result.kind == "malformed"
        assert len(result.sections) == 1
        assert result.sections[0].title == DIAGNOSTIC_TITLE
        assert raw in result.sections[0].content
        assert result.raw == raw
        assert result.error

    def test_wrong_shape_is_malformed(self):
        result = parse_sections(json.dumps({"documents": [{"name": "x"}]}))

        assert result.kind == "malformed"
        assert result.sections[0].title == DIAGNOSTIC_TITLE

    def test_empty_section_list_is_malformed(self):
        assert parse_sections('{"sections": []}').kind == "malformed"

    def test_blank_title_is_malformed(self):
        raw = json.dumps({"sections": [{"title": "   ", "content": "<p>x</p>"}]})

        assert parse_sections(raw).kind == "malformed"

    def test_none_and_empty_never_raise(self):
        assert parse_sections(None).kind == "malformed"
        assert len(sections_or_diagnostic("")) == 1

    def test_deeply_nested_input_becomes_diagnostic(self):
        result = parse_sections("[" * 100000)

        assert result.kind == "malformed"
        assert result.sections[0].title == DIAGNOSTIC_TITLE

    def test_raw_text_is_escaped_inside_pre(self):
        raw = "gagal </pre><script>alert(1)</script>"

        content = parse_sections(raw).sections[0].content

        assert "<script>" not in content
        assert "&lt;/pre&gt;&lt;script&gt;" in content
        assert content.count("</pre>") == 1


class TestSectionIds:

    def test_non_string_ids_are_accepted(self):
        raw = json.dumps({"sections": [
            {"id": 1.5, "title": "A", "content": "<p>x</p>"},
            {"id": True, "title": "B", "content": "<p>y</p>"},
            {"id": {"nested": 1}, "title": "C", "content": "<p>z</p>"},
        ]})

        result = parse_sections(raw)

        assert result.kind == "valid"
        assert [s.id for s in result.sections] == ["1.5", "True", None]
