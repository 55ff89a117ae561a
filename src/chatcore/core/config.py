# config.py

import os
import yaml
from pathlib import Path
from chatcore.core.state import ChatOptions, Config


def load_config(profile: str = "default", config_dir: Path | None = None) -> Config:
    """Load Config with YAML and env overrides.

    Only the fields defined in chatcore.core.state.Config are accepted:
      profile, host, model, temperature, max_tokens, store_path, timeout, retries
    """

    # Base defaults aligned with state.Config
    cfg_map: dict[str, object] = {
        "profile": profile,
        "host": "http://localhost:11434",
        "model": None,
        "temperature": 0.7,
        "max_tokens": 2048,
        "store_path": Path("runtime") / "sessions.json",
        "timeout": 120.0,
        "retries": 0,
    }

    # Optional YAML overrides; only accept known keys
    yaml_path = (config_dir or Path("configs")) / f"{profile}.yaml"
    if yaml_path.exists():
        try:
            with open(yaml_path, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f) or {}
            if isinstance(yaml_config, dict):
                for k in list(cfg_map.keys()):
                    if k in yaml_config and yaml_config[k] is not None:
                        cfg_map[k] = yaml_config[k]
        except yaml.YAMLError:
            # Ignore YAML issues; stick to defaults
            pass

    # Environment overrides
    env_overrides = {
        "host": os.getenv("OLLAMA_HOST"),
        "model": os.getenv("CHAT_MODEL"),
        "temperature": os.getenv("CHAT_TEMPERATURE"),
        "max_tokens": os.getenv("CHAT_MAX_TOKENS"),
        "store_path": os.getenv("CHAT_STORE_PATH"),
        "timeout": os.getenv("OLLAMA_TIMEOUT"),
        "retries": os.getenv("OLLAMA_RETRIES"),
    }
    for k, v in env_overrides.items():
        if v is None or not v.strip():
            continue
        if k in {"max_tokens", "retries"}:
            try:
                cfg_map[k] = int(v)
            except ValueError:
                continue
        elif k in {"temperature", "timeout"}:
            try:
                cfg_map[k] = float(v)
            except ValueError:
                continue
        else:
            cfg_map[k] = v.strip()

    # Ollama accepts a bare host:port in OLLAMA_HOST
    host = str(cfg_map["host"]).rstrip("/")
    if "://" not in host:
        host = "http://" + host
    cfg_map["host"] = host

    # Coerce store_path to Path if a string slipped in
    sp = cfg_map.get("store_path")
    if isinstance(sp, str):
        cfg_map["store_path"] = Path(sp).expanduser()

    return Config(**cfg_map)  # type: ignore[arg-type]


def default_options(cfg: Config) -> ChatOptions:
    # ChatOptions rejects non-numeric profile values with a ValidationError
    return ChatOptions(temperature=cfg.temperature, max_tokens=cfg.max_tokens)
