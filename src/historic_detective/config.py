"""Configuration settings for Historic Detective."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Local record stores
    parcels_path: str = "data/parcels.csv"
    archives_path: str = "data/archives.csv"

    # Precomputed embedding snapshots (.npz with "ids" and "vectors")
    image_index_path: str = "data/image_embeddings.npz"
    text_index_path: str = "data/text_embeddings.npz"

    # Geocoding (Nominatim)
    nominatim_url: str = "https://nominatim.openstreetmap.org/search"
    nominatim_user_agent: str = "cle-historic-agent/1.0"
    geocode_limit: int = 5

    # Embedding gateway (OpenAI-compatible). Empty base URL = embedder unavailable.
    embedding_base_url: str = ""
    embedding_api_key: str = "dummy-key"
    model_image_embedding: str = "clip-vit"  # 512-dim image embeddings
    model_text_embedding: str = "clip-vit"  # same space as the image index

    # Embedding dimensions (must match the stored snapshots)
    dim_image_embedding: int = 512
    dim_text_embedding: int = 512

    # OCR
    tesseract_cmd: str = "tesseract"

    # ── Adapter timeouts (seconds) ──────────────────────────────────────────
    # A timed-out adapter becomes an error result; the request continues.
    adapter_timeout: float = 5.0
    adapter_timeouts: dict[str, float] = {"ocr": 8.0, "image_index": 8.0}
    report_timeout: float = 2.0

    # ── Consolidation policies (source precedence, highest first) ───────────
    text_policy: list[str] = ["archive", "property"]
    image_policy: list[str] = ["archive", "image_index"]
    location_policy: list[str] = ["property"]

    # ── Nearest-neighbour search ────────────────────────────────────────────
    image_top_k: int = 5
    text_top_k: int = 10

    # Logging
    log_level: str = "INFO"
    log_api_calls: bool = False

    def timeout_for(self, source: str) -> float:
        """Per-adapter timeout, falling back to the default."""
        return self.adapter_timeouts.get(source, self.adapter_timeout)


settings = Settings()
