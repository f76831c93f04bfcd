# agent/llm.py
"""
Chat transport for the R actions.

Settings live in .rscribe/llm_config.json under the working directory. The
file is written with defaults the first time it is needed and re-read on
every call, so switching provider or model takes effect immediately.

Two wire formats are spoken:
  anthropic     POST {base_url}/v1/messages
  all others    POST {base_url}/chat/completions (OpenAI-compatible:
                llama.cpp, Ollama, OpenAI, OpenRouter, Gemini, ...)

Replies are cleaned before they are returned: outer whitespace and one
```r / ```R / ```roxygen2 / ```markdown fence are removed.
"""
from __future__ import annotations

import json
import os
import re
import time
from pathlib import Path
from typing import Dict, List, Optional

import requests

from agent.logger import log

CONFIG_DIR  = ".rscribe"
CONFIG_NAME = "llm_config.json"

PRESETS: Dict[str, Dict[str, str]] = {
    "local":      {"base_url": "http://127.0.0.1:8080/v1",                                "model": "local"},
    "ollama":     {"base_url": "http://127.0.0.1:11434/v1",                               "model": "qwen2.5-coder:7b"},
    "openai":     {"base_url": "https://api.openai.com/v1",                               "model": "gpt-4o"},
    "anthropic":  {"base_url": "https://api.anthropic.com",                               "model": "claude-sonnet-4-6"},
    "openrouter": {"base_url": "https://openrouter.ai/api/v1",                            "model": "anthropic/claude-3.5-sonnet"},
    "deepseek":   {"base_url": "https://api.deepseek.com/v1",                             "model": "deepseek-coder"},
    "groq":       {"base_url": "https://api.groq.com/openai/v1",                          "model": "llama-3.1-70b-versatile"},
    "gemini":     {"base_url": "https://generativelanguage.googleapis.com/v1beta/openai", "model": "gemini-1.5-pro"},
    "azure":      {"base_url": "",                                                        "model": "gpt-4o"},
}

DEFAULTS: dict = {
    "provider":    "local",
    "model":       "",
    "api_key":     "",
    "base_url":    "",
    "max_tokens":  4096,
    "temperature": 0.2,
    "top_p":       0.9,
    "timeout":     180,
    "retries":     2,
}

SYSTEM_PROMPT = (
    "You are a world leading expert in all aspects of R programming and all "
    "libraries on CRAN. You answer with R code or roxygen2 comments only, "
    "exactly as asked, without commentary."
)

_FENCE = re.compile(r"\A```(?:r|R|roxygen2|markdown)?[ \t]*\n(.*?)\n?```\Z", re.DOTALL)


class ProviderError(RuntimeError):
    """The provider answered, but not with something we can use."""


# ─────────────────────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────────────────────

def config_path() -> Path:
    return Path(os.getcwd()) / CONFIG_DIR / CONFIG_NAME


def load_config() -> dict:
    """Defaults, overlaid with the JSON file, with gaps filled from the provider preset."""
    p   = config_path()
    cfg = dict(DEFAULTS)
    try:
        if not p.exists():
            save_config(DEFAULTS)
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        log.warning(f"[yellow]Cannot read {p} ({e}); using defaults.[/yellow]")
        data = {}
    if isinstance(data, dict):
        cfg.update(data)
    else:
        log.warning(f"[yellow]{p} does not hold a JSON object; using defaults.[/yellow]")
    cfg["provider"] = str(cfg["provider"]).lower()

    preset = PRESETS.get(cfg["provider"], {})
    for key in ("base_url", "model"):
        if not cfg.get(key):
            cfg[key] = preset.get(key, "")
        cfg[key] = str(cfg[key])
    return cfg


def save_config(cfg: dict) -> Path:
    """Write settings; the next call_llm() picks them up."""
    p = config_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(cfg, indent=2), encoding="utf-8")
    log.info(f"[green]LLM config saved:[/green] {cfg.get('provider')}/{cfg.get('model') or 'preset'}")
    return p


def list_providers() -> List[str]:
    return sorted(PRESETS)


def _as_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        log.warning(f"[yellow]Not a number in {CONFIG_NAME}: {value!r}; using {default}.[/yellow]")
        return default


# ─────────────────────────────────────────────────────────────────────────────
# Wire formats
# ─────────────────────────────────────────────────────────────────────────────

def clean_response(text: Optional[str]) -> str:
    text = (text or "").strip()
    m = _FENCE.match(text)
    return m.group(1).strip() if m else text


def _headers(cfg: dict) -> dict:
    if cfg["provider"] == "anthropic":
        return {
            "x-api-key":         cfg.get("api_key", ""),
            "anthropic-version": "2023-06-01",
            "Content-Type":      "application/json",
        }
    headers = {"Content-Type": "application/json"}
    if cfg.get("api_key"):
        headers["Authorization"] = f"Bearer {cfg['api_key']}"
    if "openrouter" in cfg["base_url"]:
        headers["X-Title"] = "rscribe"
    return headers


def _post(cfg: dict, path: str, body: dict) -> dict:
    url = cfg["base_url"].rstrip("/") + path
    r = requests.post(url, headers=_headers(cfg), json=body, timeout=int(cfg["timeout"]))
    if r.status_code == 404:
        raise ProviderError(
            f"404 from {url}: check base_url in {CONFIG_DIR}/{CONFIG_NAME} "
            "(llama.cpp serves http://127.0.0.1:8080/v1, Ollama http://127.0.0.1:11434/v1)"
        )
    r.raise_for_status()
    return r.json()


def _chat_openai(cfg: dict, prompt: str) -> str:
    data = _post(cfg, "/chat/completions", {
        "model":       cfg["model"],
        "messages":    [{"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user",   "content": prompt}],
        "max_tokens":  int(cfg["max_tokens"]),
        "temperature": float(cfg["temperature"]),
        "top_p":       float(cfg["top_p"]),
    })
    choices = data.get("choices") or []
    if not choices:
        raise ProviderError(f"no choices in reply (keys: {sorted(data)})")
    return choices[0]["message"]["content"]


def _chat_anthropic(cfg: dict, prompt: str) -> str:
    if not cfg.get("api_key"):
        raise ProviderError(f"provider 'anthropic' needs an api_key in {CONFIG_DIR}/{CONFIG_NAME}")
    data = _post(cfg, "/v1/messages", {
        "model":      cfg["model"],
        "max_tokens": int(cfg["max_tokens"]),
        "system":     SYSTEM_PROMPT,
        "messages":   [{"role": "user", "content": prompt}],
    })
    blocks = data.get("content") or []
    if not blocks:
        raise ProviderError(f"empty reply: {data}")
    return blocks[0]["text"]


# ─────────────────────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────────────────────

def call_llm(prompt: str, retries: Optional[int] = None) -> str:
    """
    Send prompt to the configured model and return the cleaned reply.

    Never raises. Each failed attempt is logged and retried after a short
    pause (longer after a timeout). When every attempt has failed the JSON
    string {"error": "LLM unreachable: ..."} is returned instead; test for it
    with is_error_reply().
    """
    cfg      = load_config()
    chat     = _chat_anthropic if cfg["provider"] == "anthropic" else _chat_openai
    attempts = 1 + max(0, _as_int(cfg["retries"], 2) if retries is None else retries)

    reason = "no attempt made"
    for n in range(1, attempts + 1):
        try:
            return clean_response(chat(cfg, prompt))
        except requests.Timeout:
            reason = f"timeout after {cfg['timeout']}s"
            pause = 2 ** n
        except (requests.RequestException, ProviderError, KeyError, ValueError) as e:
            reason = str(e)
            pause = n
        log.warning(f"[yellow]LLM attempt {n}/{attempts} failed:[/yellow] {reason}")
        if n < attempts:
            time.sleep(pause)

    log.error(f"[red]LLM unreachable ({cfg['provider']}/{cfg['model']}): {reason}[/red]")
    return json.dumps({"error": f"LLM unreachable: {reason}"})


def is_error_reply(reply: str) -> bool:
    """True for the {"error": ...} payload call_llm returns after giving up."""
    try:
        data = json.loads(reply)
    except (TypeError, ValueError):
        return False
    return isinstance(data, dict) and "error" in data


def list_models() -> List[str]:
    """Model ids the configured endpoint offers (GET /models), or [] if it will not say."""
    cfg  = load_config()
    path = "/v1/models" if cfg["provider"] == "anthropic" else "/models"
    url  = cfg["base_url"].rstrip("/") + path
    try:
        r = requests.get(url, headers=_headers(cfg), timeout=int(cfg["timeout"]))
        r.raise_for_status()
        data = r.json()
    except (requests.RequestException, ValueError) as e:
        log.warning(f"[yellow]Cannot list models for {cfg['provider']}: {e}[/yellow]")
        return []
    return [m["id"] for m in data.get("data", []) if "id" in m]


def get_model_info() -> dict:
    cfg = load_config()
    return {key: cfg[key] for key in ("provider", "model", "base_url")}
