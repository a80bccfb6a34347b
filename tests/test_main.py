import json

import pytest

from cookbook.main import main
from cookbook.recipes import draft_from_entry, drafts_from_entries, load_recipes


@pytest.fixture
def env_file(tmp_path, clean_env):
    db = tmp_path / "cookbook.db"
    path = tmp_path / ".env"
    path.write_text(f'COOKBOOK_STORE_CONFIG={{"database_url": "sqlite:///{db}"}}\n')
    return str(path)


def test_load_recipes_missing_file(tmp_path):
    assert load_recipes(tmp_path / "none.json") == []


def test_draft_from_entry_accepts_text_and_lists():
    draft = draft_from_entry({"title": "Soup", "ingredients": "water\n\nsalt", "instructions": ["Boil", "Season"]})
    assert draft.ingredients == ["water", "salt"]
    assert draft.instructions == "Boil\nSeason"


def test_invalid_entries_are_skipped():
    drafts = drafts_from_entries([{"title": "", "ingredients": ["x"], "instructions": "y"}, {"title": "Ok", "ingredients": ["x"], "instructions": "y"}])
    assert [d.title for d in drafts] == ["Ok"]


def test_import_then_list(tmp_path, env_file, capsys):
    data = tmp_path / "recipes.json"
    data.write_text(json.dumps([
        {"title": "Pie", "ingredients": ["flour", "apples"], "instructions": "Bake."},
        {"title": "Soup", "ingredients": ["water"], "instructions": "Boil."},
    ]))

    main(["--env-file", env_file, "import", str(data)])
    main(["--env-file", env_file, "import", str(data)])
    main(["--env-file", env_file, "list"])

    out = capsys.readouterr().out
    assert "Imported 2 recipes" in out
    assert "Imported 0 recipes" in out
    assert "2 recipe(s)." in out
    assert "- Pie\n- Soup" in out


def test_list_without_store_config_exits(tmp_path, clean_env):
    empty = tmp_path / ".env"
    empty.write_text("")
    with pytest.raises(SystemExit):
        main(["--env-file", str(empty), "list"])
