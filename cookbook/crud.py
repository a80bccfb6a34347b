from typing import Callable, List, Optional

from . import schemas
from .store import SERVER_TIMESTAMP, DocumentStore, Subscription, collection_path

ORDER_FIELD = "dateAdded"
EDITABLE_FIELDS = {"title", "ingredients", "instructions"}


def recipes_path(app_id: str, uid: str) -> str:
    return collection_path("artifacts", app_id, "users", uid, "recipes")


def recipe_from_document(doc: dict) -> schemas.Recipe:
    return schemas.Recipe.model_validate(doc)


def get_recipe(store: DocumentStore, path: str, recipe_id: str) -> Optional[schemas.Recipe]:
    doc = store.get(path, recipe_id)
    return recipe_from_document(doc) if doc else None


def create_recipe(store: DocumentStore, path: str, recipe: schemas.RecipeDraft) -> str:
    # id and dateAdded are always assigned by the store
    data = recipe.model_dump(include=EDITABLE_FIELDS)
    data[ORDER_FIELD] = SERVER_TIMESTAMP
    return store.add(path, data)


def update_recipe(store: DocumentStore, path: str, recipe_id: str, recipe: schemas.RecipeDraft):
    # dateAdded is left untouched so the recipe keeps its place in the book
    store.update(path, recipe_id, recipe.model_dump(include=EDITABLE_FIELDS))


def delete_recipe(store: DocumentStore, path: str, recipe_id: str):
    store.delete(path, recipe_id)


def watch_recipes(
    store: DocumentStore,
    path: str,
    callback: Callable[[List[schemas.Recipe]], None],
) -> Subscription:
    def on_snapshot(docs):
        callback([recipe_from_document(d) for d in docs])

    return store.watch(path, on_snapshot, order_by=ORDER_FIELD)
