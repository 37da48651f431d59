from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    openai_api_key: str = ""  # Set via OPENAI_API_KEY env var
    generation_model: str = "gpt-4o-mini"
    brand_name: str = "SlideMint"
    watermark_text: str = "Post24.ai"

    # Empty = in-memory store (dev / tests)
    database_url: str = ""  # Set via DATABASE_URL env var
    override_store_path: str = ""  # JSON file for fields not in the carousels table yet

    # Fonts
    font_path: str = "assets/fonts"
    font_family: str = "Heebo"  # Needs Hebrew glyphs for RTL decks

    # Rendering / export
    render_width: int = 540  # Logical width shared by preview and export
    upscale_factor: int = 2  # 540 -> 1080 px
    show_slide_number: bool = True
    settle_delay: float = 0.2
    use_ready_signal: bool = True
    slide_export_timeout: float = 15.0
    export_retries: int = 0

    # Editor
    autosave_delay: float = 1.0

    host: str = "0.0.0.0"
    port: int = 8000

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
