# tests/test_file_utils.py
import xml.etree.ElementTree as ET
from PIL import Image
from stitch import file_utils
from stitch.palette import Palette

PALETTE = Palette([("#ff0000", "Red"), ("#0000ff", "Blue")])
GRID = (
    ("#ff0000", "#0000ff", None),
    ("#0000ff", "#0000ff", "#ff0000"),
)
SVG_NS = "{http://www.w3.org/2000/svg}"


def test_render_grid_image_draws_tiles():
    img = file_utils.render_grid_image(GRID, PALETTE, cell_size=4)

    assert img.mode == "RGBA"
    assert img.size == (3 * 4, 2 * 4)
    assert img.getpixel((1, 1)) == (255, 0, 0, 255)
    assert img.getpixel((4 + 3, 3)) == (0, 0, 255, 255)
    assert img.getpixel((8 + 2, 4 + 2)) == (255, 0, 0, 255)
    # Empty cell stays transparent
    assert img.getpixel((8 + 1, 1))[3] == 0


def test_render_grid_image_default_cell_size_and_empty_grid():
    img = file_utils.render_grid_image(GRID, PALETTE)
    assert img.size == (3 * 16, 2 * 16)
    assert file_utils.render_grid_image((), PALETTE) is None


def test_save_pattern_png_creates_file_with_metadata(tmp_path):
    img = Image.new("RGB", (10, 10), color=(100, 150, 200))
    output_file = tmp_path / "nested" / "test_output.png"
    cmd_line = "stitchrow.py pattern.png out --pattern pattern.json"
    metadata = {"User Note": "Test run", "Extra_Key": "Extra value", "9lives": "cat"}

    file_utils.save_pattern_png(img, output_file, command_line_invocation=cmd_line, additional_metadata=metadata)

    assert output_file.exists()
    with Image.open(output_file) as im:
        info = im.info
        assert info["stitchrow:command_line"] == cmd_line
        assert info["stitchrow:User_Note"] == "Test run"
        assert info["stitchrow:Extra_Key"] == "Extra value"
        assert info["stitchrow:stitchrow_9lives"] == "cat"


def test_save_grid_svg_writes_one_rect_per_filled_cell(tmp_path):
    output_file = tmp_path / "grid.svg"

    written = file_utils.save_grid_svg(
        GRID, PALETTE, output_file, cell_size=10,
        command_line_invocation="stitchrow.py", additional_metadata={"Author": "Tester"}
    )

    assert written == output_file
    root = ET.parse(output_file).getroot()
    assert root.tag.endswith("svg")
    assert root.get("width") == "30px"
    rects = root.findall(f".//{SVG_NS}rect")
    assert len(rects) == 5
    titles = [t.text for t in root.iter(f"{SVG_NS}title")]
    assert titles == ["Red", "Blue"]

    metadata_text = ET.tostring(root, encoding="unicode")
    assert "Tester" in metadata_text
    assert "3x2" in metadata_text


def test_save_grid_svg_with_empty_grid(tmp_path):
    assert file_utils.save_grid_svg((), PALETTE, tmp_path / "grid.svg") is None


def test_verbatim_write_and_get_xml(tmp_path):
    xml_content = "<metadata><info>Test</info></metadata>"
    verbatim = file_utils.Verbatim(xml_string=xml_content, elementname="metadata")

    output_file = tmp_path / "verbatim_output.xml"
    with open(output_file, "w") as f:
        verbatim.write(f, indent=2)
    assert xml_content in output_file.read_text()

    element = verbatim.get_xml()
    assert isinstance(element, ET.Element)
    assert element.find("info").text == "Test"


def test_verbatim_write_without_options(tmp_path):
    verbatim = file_utils.Verbatim(xml_string="<metadata/>", elementname="metadata")
    output_file = tmp_path / "plain.xml"
    with open(output_file, "w") as f:
        verbatim.write(f)
    assert output_file.read_text() == "<metadata/>"
