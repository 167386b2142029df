# =============================================================================
# utils/config.py - Configuration management
# =============================================================================

import os
from typing import Optional, List
from dotenv import load_dotenv

from core.analyzer import DEFAULT_MAX_ROWS


class Config:
    """Configuration management"""

    def __init__(self):
        load_dotenv()

    @property
    def secret_key(self) -> Optional[str]:
        return os.getenv("FLASK_SECRET_KEY")

    @property
    def accounts_file(self) -> str:
        return os.getenv("ACCOUNTS_FILE", os.path.join("data", "accounts.json"))

    @property
    def max_analysis_rows(self) -> int:
        return int(os.getenv("MAX_ANALYSIS_ROWS", DEFAULT_MAX_ROWS))

    @property
    def max_upload_size(self) -> int:
        """Upload cap in bytes"""
        return int(os.getenv("MAX_UPLOAD_MB", 16)) * 1024 * 1024

    @property
    def upload_folder(self) -> str:
        return os.getenv("UPLOAD_FOLDER", "uploads")

    @property
    def output_folder(self) -> str:
        return os.getenv("OUTPUT_FOLDER", "downloads")

    @property
    def dataset_folder(self) -> str:
        """Where the current risk dataset and role file are kept"""
        return os.getenv("DATASET_FOLDER", os.path.join("data", "datasets"))

    @property
    def max_jobs(self) -> int:
        """Analysis results kept in memory before the oldest is evicted"""
        return int(os.getenv("MAX_ANALYSIS_JOBS", 20))

    @property
    def log_level(self) -> str:
        return os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def port(self) -> int:
        return int(os.getenv("PORT", 5000))

    @property
    def debug(self) -> bool:
        return os.getenv("FLASK_DEBUG", "False").lower() == "true"

    def validate(self) -> bool:
        """Validate that all required configuration is present"""
        return not self.get_missing_vars()

    def get_missing_vars(self) -> List[str]:
        """Get list of missing required configuration variables"""
        vars_and_names = [
            (self.secret_key, "FLASK_SECRET_KEY"),
        ]
        return [name for var, name in vars_and_names if not var]
