"""Smoke test for application startup."""


def test_app_imports() -> None:
    """Verify the app can be imported without errors."""
    from deckbuilder.main import app

    assert app.title == "DeckBuilder"


def test_routes_registered() -> None:
    from deckbuilder.main import app

    assert app.url_path_for("list_games") == "/api/games"
    assert app.url_path_for("generate_game", game_id="g") == "/api/games/g/generate"
    assert app.url_path_for("generation_status") == "/api/generator/status"
    assert app.url_path_for("get_collection_image", game_id="g", collection_id="c") == (
        "/api/games/g/collections/c/image"
    )
    assert app.url_path_for("ready") == "/ready"
