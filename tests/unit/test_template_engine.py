"""Unit tests for the report template engine."""

import pytest

from skiptrace.normalization.schema import Entity, EntityType
from skiptrace.reports.template_engine import TemplateEngine, confidence_band

ENTITY_ROW = "| {{ entity.type.value }} | {{ entity.value|md_cell }} | {{ entity.confidence|confidence_band }} |"


@pytest.fixture
def templates(tmp_path):
    (tmp_path / "entity_row.md.j2").write_text(ENTITY_ROW, encoding="utf-8")
    (tmp_path / "subject.md.j2").write_text("# Skip-Trace Report: {{ name }}\n", encoding="utf-8")
    return TemplateEngine(templates_dir=tmp_path)


def test_render_entity_row(templates):
    phone = Entity(type=EntityType.PHONE, value="(217) 555-0199", confidence=85)
    assert templates.render("entity_row.md.j2", {"entity": phone}) == "| phone | (217) 555-0199 | high |"


def test_entity_value_cannot_break_the_table(templates):
    employer = Entity(type=EntityType.EMPLOYMENT, value="Smith | Sons\nHauling", confidence=65)
    rendered = templates.render("entity_row.md.j2", {"entity": employer})
    assert rendered == "| employment | Smith \\| Sons Hauling | medium |"


def test_list_templates(templates):
    assert sorted(templates.list_templates()) == ["entity_row.md.j2", "subject.md.j2"]


def test_packaged_report_template_is_default():
    assert "skiptrace_report.md.j2" in TemplateEngine().list_templates()


def test_missing_template_raises(tmp_path):
    engine = TemplateEngine(templates_dir=str(tmp_path / "empty"))
    with pytest.raises(FileNotFoundError):
        engine.render("address_table.md.j2", {})


@pytest.mark.parametrize(("score", "band"), [(100, "high"), (75, "high"), (74, "medium"), (50, "medium"), (49, "low"), (None, "low")])
def test_confidence_band_filter(score, band):
    assert confidence_band(score) == band
