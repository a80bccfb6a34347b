from datetime import datetime

from cookbook.pages import RecipePage


def test_empty_page_is_welcome():
    page = RecipePage()
    assert page.is_welcome
    assert page.date_label == ""
    assert page.request_delete() is False


def test_toggle_changes_only_one_ingredient(make_recipe):
    page = RecipePage()
    page.show(make_recipe(ingredients=["a", "b", "c"]))

    page.toggle_ingredient(1)

    assert [page.is_checked(i) for i in range(3)] == [False, True, False]
    page.toggle_ingredient(1)
    assert not page.is_checked(1)


def test_toggle_out_of_range_is_ignored(make_recipe):
    page = RecipePage()
    page.show(make_recipe(ingredients=["a"]))

    assert page.toggle_ingredient(5) is False
    assert page.toggle_ingredient(-1) is False
    assert page.checked == {}


def test_checks_reset_when_recipe_changes(make_recipe):
    page = RecipePage()
    page.show(make_recipe(recipe_id="r1"))
    page.toggle_ingredient(0)
    page.toggle_ingredient(1)

    page.show(make_recipe(recipe_id="r2"))

    assert page.checked == {}


def test_checks_survive_a_new_snapshot_of_the_same_recipe(make_recipe):
    page = RecipePage()
    page.show(make_recipe(recipe_id="r1"))
    page.toggle_ingredient(0)

    page.show(make_recipe(recipe_id="r1", title="Pie (renamed)"))

    assert page.is_checked(0)


def test_date_label_formats_creation_date(make_recipe):
    page = RecipePage()
    page.show(make_recipe(date_added=datetime(2024, 6, 15, 12, 0)))
    assert page.date_label == "Jun 15, 2024"


def test_delete_needs_confirmation(make_recipe):
    page = RecipePage()
    page.show(make_recipe(recipe_id="r1", title="Pie"))

    assert page.confirm_delete() is None
    assert page.request_delete()
    assert page.confirm_message == 'Delete "Pie"? This cannot be undone.'
    assert page.confirm_delete() == "r1"
    assert not page.pending_delete


def test_cancelled_delete_does_nothing(make_recipe):
    page = RecipePage()
    page.show(make_recipe())
    page.request_delete()
    page.cancel_delete()

    assert page.confirm_delete() is None


def test_turning_the_page_drops_a_pending_delete(make_recipe):
    page = RecipePage()
    page.show(make_recipe(recipe_id="r1"))
    page.request_delete()
    page.show(make_recipe(recipe_id="r2"))

    assert page.confirm_delete() is None
