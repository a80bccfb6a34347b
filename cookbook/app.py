import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Form, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, HTMLResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from . import crud, schemas
from .config import CookbookConfig, load_config
from .cookbook import Cookbook
from .pages import WELCOME_HINT, WELCOME_TITLE
from .store import DocumentNotFound
from .timers import Scheduler


package_dir = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=str(package_dir / "templates"))
static_dir = package_dir / "static"

router = APIRouter()


def get_cookbook(request: Request) -> Cookbook:
    return request.app.state.cookbook


def get_ready_cookbook(cookbook: Cookbook = Depends(get_cookbook)) -> Cookbook:
    if not cookbook.is_ready:
        raise HTTPException(status_code=503, detail=f"Cookbook is {cookbook.state.value}")
    return cookbook


def back_to_book() -> RedirectResponse:
    return RedirectResponse(url="/", status_code=303)


def recipe_json(recipe: schemas.Recipe) -> dict:
    return recipe.model_dump(mode="json", by_alias=True)


# Serve a small favicon to avoid 404 noise from browsers requesting /favicon.ico
@router.get("/favicon.ico")
def favicon():
    fav = static_dir / "favicon.ico"
    if fav.exists():
        return FileResponse(str(fav), media_type="image/x-icon")
    empty_svg = "<svg xmlns='http://www.w3.org/2000/svg' width='1' height='1'></svg>"
    return HTMLResponse(content=empty_svg, media_type="image/svg+xml")


@router.get("/", response_class=HTMLResponse)
def read_root(request: Request, cookbook: Cookbook = Depends(get_cookbook)):
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "cookbook": cookbook,
            "book": cookbook.book,
            "page": cookbook.book.page,
            "modal": cookbook.modal,
            "form": cookbook.form,
            "welcome_title": WELCOME_TITLE,
            "welcome_hint": WELCOME_HINT,
        },
    )


@router.post("/book/next")
def next_page(cookbook: Cookbook = Depends(get_ready_cookbook)):
    cookbook.book.request_next()
    return back_to_book()


@router.post("/book/previous")
def previous_page(cookbook: Cookbook = Depends(get_ready_cookbook)):
    cookbook.book.request_previous()
    return back_to_book()


@router.post("/page/ingredients/{index}/toggle")
def toggle_ingredient(index: int, cookbook: Cookbook = Depends(get_ready_cookbook)):
    cookbook.book.toggle_ingredient(index)
    return back_to_book()


@router.post("/page/edit")
def edit_page(cookbook: Cookbook = Depends(get_ready_cookbook)):
    cookbook.edit_displayed()
    return back_to_book()


@router.post("/page/delete")
def request_delete(cookbook: Cookbook = Depends(get_ready_cookbook)):
    cookbook.book.page.request_delete()
    return back_to_book()


@router.post("/page/delete/confirm")
def confirm_delete(cookbook: Cookbook = Depends(get_ready_cookbook)):
    cookbook.delete_displayed()
    return back_to_book()


@router.post("/page/delete/cancel")
def cancel_delete(cookbook: Cookbook = Depends(get_ready_cookbook)):
    cookbook.book.page.cancel_delete()
    return back_to_book()


@router.post("/modal/add")
def open_add(cookbook: Cookbook = Depends(get_ready_cookbook)):
    cookbook.open_add_modal()
    return back_to_book()


@router.post("/modal/close")
def close_modal(cookbook: Cookbook = Depends(get_ready_cookbook)):
    cookbook.close_modal()
    return back_to_book()


@router.post("/modal/submit")
def submit_modal(
    title: str = Form(""),
    ingredients: str = Form(""),
    instructions: str = Form(""),
    cookbook: Cookbook = Depends(get_ready_cookbook),
):
    # Incomplete forms are inert: the modal stays open with what was typed
    cookbook.submit_form(title, ingredients, instructions)
    return back_to_book()


@router.get("/api/session")
def session_info(cookbook: Cookbook = Depends(get_cookbook)):
    return {
        "state": cookbook.state.value,
        "cookbook_id": cookbook.user_id,
        "recipe_count": len(cookbook.recipes),
    }


@router.get("/api/book")
def book_state(cookbook: Cookbook = Depends(get_ready_cookbook)):
    book = cookbook.book
    page = book.page
    recipe = page.recipe
    return {
        "current_page_index": book.current_page_index,
        "total_pages": book.total_pages,
        "is_flipping": book.is_flipping,
        "flip_direction": book.flip_direction.value,
        "can_go_previous": book.can_go_previous,
        "can_go_next": book.can_go_next,
        "recipe": recipe_json(recipe) if recipe else None,
        "checked": sorted(i for i, checked in page.checked.items() if checked),
        "pending_delete": page.pending_delete,
        "modal": {
            "is_open": cookbook.modal.is_open,
            "title": cookbook.modal.title,
            "editing_id": cookbook.editing_recipe.id if cookbook.editing_recipe else None,
        },
    }


@router.get("/api/recipes", response_model=List[schemas.Recipe])
def list_recipes(cookbook: Cookbook = Depends(get_ready_cookbook)):
    return cookbook.recipes


@router.get("/api/recipes/{recipe_id}", response_model=schemas.Recipe)
def get_recipe(recipe_id: str, cookbook: Cookbook = Depends(get_ready_cookbook)):
    recipe = crud.get_recipe(cookbook.store, cookbook.recipes_path, recipe_id)
    if recipe is None:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return recipe


@router.post("/api/recipes", response_model=schemas.Recipe)
def create_recipe(recipe: schemas.RecipeDraft, cookbook: Cookbook = Depends(get_ready_cookbook)):
    recipe_id = crud.create_recipe(cookbook.store, cookbook.recipes_path, recipe)
    return crud.get_recipe(cookbook.store, cookbook.recipes_path, recipe_id)


@router.put("/api/recipes/{recipe_id}", response_model=schemas.Recipe)
def update_recipe(
    recipe_id: str,
    recipe: schemas.RecipeDraft,
    cookbook: Cookbook = Depends(get_ready_cookbook),
):
    try:
        crud.update_recipe(cookbook.store, cookbook.recipes_path, recipe_id, recipe)
    except DocumentNotFound:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return crud.get_recipe(cookbook.store, cookbook.recipes_path, recipe_id)


@router.delete("/api/recipes/{recipe_id}")
def delete_recipe(recipe_id: str, cookbook: Cookbook = Depends(get_ready_cookbook)):
    try:
        crud.delete_recipe(cookbook.store, cookbook.recipes_path, recipe_id)
    except DocumentNotFound:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return {"deleted": True}


@router.websocket("/ws/recipes")
async def recipes_socket(websocket: WebSocket):
    """Push the recipe list on connect and after every change."""
    cookbook: Cookbook = websocket.app.state.cookbook
    await websocket.accept()
    if not cookbook.is_ready:
        await websocket.close(code=1013)
        return

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def push(recipes: List[schemas.Recipe]):
        # Snapshots arrive on whichever thread did the write
        loop.call_soon_threadsafe(queue.put_nowait, [recipe_json(r) for r in recipes])

    async def forward():
        while True:
            await websocket.send_json(await queue.get())

    subscription = crud.watch_recipes(cookbook.store, cookbook.recipes_path, push)
    sender = asyncio.create_task(forward())
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        subscription.unsubscribe()
        sender.cancel()
        try:
            await sender
        except asyncio.CancelledError:
            pass


def create_app(config: Optional[CookbookConfig] = None, scheduler: Optional[Scheduler] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Connect once at startup; configuration is read now, not at import
        cookbook = Cookbook(config or load_config(), scheduler=scheduler)
        cookbook.connect()
        app.state.cookbook = cookbook
        yield
        cookbook.close()

    app = FastAPI(title="Family Cookbook", lifespan=lifespan)
    app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")
    # Allow CORS for API clients (adjust origins for production)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


app = create_app()
