from __future__ import annotations

import io
import json
import xml.etree.ElementTree as ET

from engine.export.json_export import export_json
from engine.export.svg import SvgWriter, export_svg
from engine.runtime.model import ShapeResult
from shapes.circle import Circle
from shapes.line import Line
from util.color import argb, rgb

RESULTS = [
    ShapeResult(0.5, argb(128, 255, 0, 0), Circle(5, 6, 3, 20, 20)),
    ShapeResult(0.4, argb(255, 0, 0, 255), Line(1, 2, 10, 12, 20, 20)),
]


def test_svg_document_structure() -> None:
    text = export_svg(RESULTS, 40, 40, 2.0, rgb(16, 32, 48))
    assert text.startswith('<?xml version="1.0" standalone="no"?>\n')
    assert '<svg xmlns="http://www.w3.org/2000/svg" version="1.1" viewBox="0 0 40 40">' in text
    assert '<rect width="100%" height="100%" fill="#102030" />' in text
    assert '<g transform="scale(2.000000) translate(0.5 0.5)">' in text
    assert text.endswith("</svg>")
    # 整形式 XML
    root = ET.fromstring(text.split("\n", 1)[1])
    assert root.tag.endswith("svg")


def test_svg_styles_for_area_and_stroked_kinds() -> None:
    text = export_svg(RESULTS, 40, 40, 1.0, rgb(0, 0, 0))
    assert 'fill="#ff0000" fill-opacity="0.501961"' in text
    assert 'fill="none" stroke="#0000ff" stroke-opacity="1.000000"' in text
    assert 'stroke-width="1.000000"' in text


def test_svg_writer_streams_same_text() -> None:
    buf = io.StringIO()
    SvgWriter().write(RESULTS, 40, 40, 1.0, rgb(0, 0, 0), buf)
    assert buf.getvalue() == export_svg(RESULTS, 40, 40, 1.0, rgb(0, 0, 0))


def test_svg_empty_results() -> None:
    text = export_svg([], 10, 10, 1.0, rgb(255, 255, 255))
    assert "<circle" not in text
    ET.fromstring(text.split("\n", 1)[1])


def test_json_is_well_formed() -> None:
    data = json.loads(export_json(RESULTS))
    assert list(data) == ["shape_0", "shape_1"]
    first = data["shape_0"]
    assert first["type"] == "circle"
    assert first["data"] == [5.0, 6.0, 3.0]
    assert first["color"] == [255, 0, 0, 128]
    assert first["score"] == 0.5
    assert data["shape_1"]["type"] == "line"
    assert len(data["shape_1"]["data"]) == 4


def test_json_empty() -> None:
    assert json.loads(export_json([])) == {}
