import pytest
from lxml import etree

from curimport.curation.launchbox_game import (
    APPLICATION_PATH_OVERRIDES,
    LaunchBoxGame,
    generate_image_filename,
    parse_platform_file,
)


GAME_XML = """
<Game>
  <ID>0b0e3c45-46a4-4b5e-8bd6-0c3bd41c1fc2</ID>
  <Title>Alien Hominid</Title>
  <Platform>Flash</Platform>
  <ApplicationPath>FPSoftware\\Flash\\flashplayer.exe</ApplicationPath>
  <CommandLine>http://uploads.ungrounded.net/59593.swf</CommandLine>
  <PlayMode>Single Player</PlayMode>
  <!-- comment -->
  <NotARealTag>skip me</NotARealTag>
  <Notes />
</Game>
"""


@pytest.mark.unit
def test_tag_name_to_field():
    assert LaunchBoxGame.tag_name_to_field("ID") == "id"
    assert LaunchBoxGame.tag_name_to_field("ApplicationPath") == "applicationPath"
    assert LaunchBoxGame.tag_name_to_field("NotARealTag") is None


@pytest.mark.unit
def test_field_to_tag_name():
    assert LaunchBoxGame.field_to_tag_name("id") == "ID"
    assert LaunchBoxGame.field_to_tag_name("commandLine") == "CommandLine"


@pytest.mark.unit
def test_parse_game_element_on_windows():
    game = LaunchBoxGame.parse(etree.fromstring(GAME_XML), host_platform='win32')

    assert game == {
        'id': '0b0e3c45-46a4-4b5e-8bd6-0c3bd41c1fc2',
        'title': 'Alien Hominid',
        'platform': 'Flash',
        'applicationPath': 'FPSoftware\\Flash\\flashplayer.exe',
        'commandLine': 'http://uploads.ungrounded.net/59593.swf',
        'playMode': 'Single Player',
        'notes': '',
    }


@pytest.mark.unit
def test_parse_game_element_overrides_application_path_on_linux():
    game = LaunchBoxGame.parse(etree.fromstring(GAME_XML), host_platform='linux')

    assert game['applicationPath'] == APPLICATION_PATH_OVERRIDES['linux']


@pytest.mark.unit
def test_parse_empty_game_element():
    assert LaunchBoxGame.parse(etree.fromstring("<Game/>"), host_platform='win32') == {}


@pytest.mark.unit
@pytest.mark.parametrize("title,index,expected", [
    ("Abobo's Big Adventure", 1, "Abobo_s Big Adventure-01"),
    ("$wag", None, "$wag"),
    ("A/B\\C?D", 0, "A_B_C_D-00"),
    ("Game: The <Sequel>", 12, "Game_ The _Sequel_-12"),
    ("Negative", -3, "Negative-00"),
])
def test_generate_image_filename(title, index, expected):
    assert generate_image_filename(title, index) == expected


@pytest.mark.unit
def test_parse_platform_file(tmp_path):
    xml_path = tmp_path / "Flash.xml"
    xml_path.write_text(f"<LaunchBox>{GAME_XML}<Game><Title>Second</Title></Game></LaunchBox>")

    parsed = parse_platform_file(xml_path, host_platform='win32')

    assert parsed.ok
    assert [g['title'] for g in parsed.value] == ['Alien Hominid', 'Second']


@pytest.mark.unit
def test_parse_platform_file_malformed(tmp_path):
    xml_path = tmp_path / "Broken.xml"
    xml_path.write_text("<LaunchBox><Game>")

    parsed = parse_platform_file(xml_path)

    assert parsed.value == []
    assert "Broken.xml" in parsed.errors[0]


@pytest.mark.unit
def test_parse_empty_application_path():
    elem = etree.fromstring("<Game><ApplicationPath/><Title></Title></Game>")

    assert LaunchBoxGame.parse(elem, host_platform='win32') == {'applicationPath': '', 'title': ''}
    assert LaunchBoxGame.parse(elem, host_platform='linux')['applicationPath'] == 'Games/flashplayer'
