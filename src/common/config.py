import os
import yaml
from pathlib import Path
from typing import Optional, Union
from dotenv import load_dotenv

load_dotenv()

class Config:
    def __init__(self):
        self.repo_root = Path(__file__).parent.parent.parent
        self.data_dir = Path(os.getenv("PRIMARY_SIGNALS_DATA_DIR", self.repo_root / "data"))
        self.raw_data_dir = self.data_dir / "raw"
        self.clean_data_dir = self.data_dir / "clean"
        self.datasets_dir = self.data_dir / "datasets"
        self.runs_dir = self.data_dir / "runs"
        
        # Pipeline configuration (states, contests, dropouts, lags)
        self.pipeline_config_path = Path(
            os.getenv("PRIMARY_SIGNALS_CONFIG", self.repo_root / "config" / "pipeline.yaml")
        )
        
        # Results document retrieval
        self.http_timeout = float(os.getenv("HTTP_TIMEOUT", "30"))
        self.http_user_agent = os.getenv("HTTP_USER_AGENT", "primary-signals/0.1")
        
        # Defaults
        self.viable_threshold = 0.01
        self.default_min_lag = 1
        self.default_max_lag = 30

    def resolve(self, path: Union[str, Path]) -> Path:
        """Resolve a config-relative path against the repository root."""
        p = Path(path)
        if not p.is_absolute():
            p = self.repo_root / p
        return p

config = Config()


def load_pipeline_config(path: Optional[Union[str, Path]] = None):
    """Read and validate the YAML pipeline configuration."""
    from src.common.errors import MissingInputError
    from src.common.schema import PipelineConfig

    config_path = Path(path) if path is not None else config.pipeline_config_path
    if not config_path.exists():
        raise MissingInputError(config_path, "load pipeline config")
    
    with open(config_path, "r") as f:
        raw = yaml.safe_load(f) or {}
    return PipelineConfig(**raw)
