"""
The cookbook application root.

Owns the store connection, the signed-in identity, the live recipe list and
the editing session, and wires them to the book, form and modal.
"""
import logging
import threading
from enum import Enum
from typing import Callable, List, Optional

from . import crud
from .auth import IdentityProvider, User
from .book import RecipeBook
from .config import CookbookConfig
from .forms import RecipeForm
from .modal import Modal
from .schemas import Recipe, RecipeDraft
from .store import DocumentStore, StoreError, Subscription
from .timers import Scheduler

logger = logging.getLogger(__name__)

ADD_TITLE = "New Recipe"
EDIT_TITLE = "Edit Recipe"


class LoadState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class Cookbook:
    def __init__(
        self,
        config: CookbookConfig,
        scheduler: Optional[Scheduler] = None,
        store: Optional[DocumentStore] = None,
    ):
        self.config = config
        self.store = store
        self.auth: Optional[IdentityProvider] = None
        self.user: Optional[User] = None
        self.state = LoadState.LOADING
        self.recipes: List[Recipe] = []

        self.book = RecipeBook(scheduler)
        self.form = RecipeForm()
        self.modal = Modal()
        self.editing_recipe: Optional[Recipe] = None
        self.is_saving = False
        # Form posts arrive on worker threads
        self._save_lock = threading.Lock()

        self._subscription: Optional[Subscription] = None
        self._unsubscribe_auth: Optional[Callable[[], None]] = None

    @property
    def user_id(self) -> Optional[str]:
        return self.user.uid if self.user else None

    @property
    def is_ready(self) -> bool:
        return self.state is LoadState.READY

    @property
    def recipes_path(self) -> str:
        if self.user is None:
            raise RuntimeError("No signed-in user")
        return crud.recipes_path(self.config.app_id, self.user.uid)

    def connect(self):
        """Open the store, sign in, and start listening for recipes.

        Any failure here leaves the cookbook in the FAILED state for good.
        """
        if not self.config.store:
            logger.error("Missing store configuration")
            self.state = LoadState.FAILED
            return
        try:
            if self.store is None:
                self.store = DocumentStore.from_config(self.config.store)
            self.auth = IdentityProvider(self.store.session_factory)
            self._unsubscribe_auth = self.auth.on_auth_state_changed(self._on_auth_state_changed)
        except Exception:
            logger.exception("Cookbook initialization failed")
            self.state = LoadState.FAILED

    def _on_auth_state_changed(self, user: Optional[User]):
        if user is None:
            self._stop_listening()
            self.user = None
            self._sign_in()
            return
        self.user = user
        self.state = LoadState.READY
        self._listen()

    def _sign_in(self):
        token = self.config.initial_auth_token
        if token:
            self.auth.sign_in_with_custom_token(token)
        else:
            self.auth.sign_in_anonymously()

    def _listen(self):
        self._stop_listening()
        logger.info(f"Listening for recipes of {self.user.uid}")
        self._subscription = crud.watch_recipes(self.store, self.recipes_path, self._on_snapshot)

    def _stop_listening(self):
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _on_snapshot(self, recipes: List[Recipe]):
        self.recipes = recipes
        self.book.set_recipes(recipes)

    def _set_editing(self, recipe: Optional[Recipe]):
        self.editing_recipe = recipe
        self.form.populate(recipe)

    def _set_saving(self, saving: bool):
        self.is_saving = saving
        self.form.is_saving = saving

    def open_add_modal(self):
        self._set_editing(None)
        self.modal.open(ADD_TITLE)

    def open_edit_modal(self, recipe: Recipe):
        self._set_editing(recipe)
        self.modal.open(EDIT_TITLE)

    def edit_displayed(self) -> bool:
        recipe = self.book.current_recipe
        if recipe is None:
            return False
        self.open_edit_modal(recipe)
        return True

    def close_modal(self):
        self.modal.close()

    def submit_form(self, title: str, ingredients: str, instructions: str) -> bool:
        self.form.update(title=title, ingredients=ingredients, instructions=instructions)
        return self.form.submit(self.save_recipe) is not None

    def save_recipe(self, draft: RecipeDraft) -> bool:
        """Create a recipe, or update the one being edited.

        On success the modal closes and the edit session ends. On failure the
        error is logged and the modal stays open.
        """
        if self.store is None or self.user is None:
            return False
        if self.is_saving or not self._save_lock.acquire(blocking=False):
            logger.info("A save is already in progress")
            return False
        try:
            self._set_saving(True)
            if self.editing_recipe is not None:
                crud.update_recipe(self.store, self.recipes_path, self.editing_recipe.id, draft)
            else:
                count = len(self.recipes)
                crud.create_recipe(self.store, self.recipes_path, draft)
                self.book.go_to(count + 1)
            self.modal.close()
            self._set_editing(None)
            return True
        except StoreError:
            logger.exception("Save error")
            return False
        finally:
            self._set_saving(False)
            self._save_lock.release()

    def delete_recipe(self, recipe_id: str) -> bool:
        if self.store is None or self.user is None:
            return False
        try:
            crud.delete_recipe(self.store, self.recipes_path, recipe_id)
            return True
        except StoreError:
            logger.exception("Delete error")
            return False

    def delete_displayed(self) -> bool:
        """Delete the displayed recipe once the page has confirmed it."""
        recipe_id = self.book.page.confirm_delete()
        if recipe_id is None:
            return False
        self.book.delete_page(recipe_id, self.delete_recipe)
        return True

    def close(self):
        self.book.close()
        self._stop_listening()
        if self._unsubscribe_auth is not None:
            self._unsubscribe_auth()
            self._unsubscribe_auth = None
