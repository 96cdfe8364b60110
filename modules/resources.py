# modules/resources.py

##################################### Imports #####################################
# Libraries
import asyncio
import importlib
import os
import tempfile
from dataclasses import dataclass

import requests

# Modules
import config
from modules.errors import FetchError
from modules.utils import log

###################################################################################

@dataclass(frozen=True)
class RemoteResource:
    """
    Something the AI pipeline needs before it can run.
    kind "module": a Python package, activated by importing `target`.
    kind "file": a file downloaded from `url` into the cache dir as `target`.
    """
    key: str
    kind: str
    url: str
    version: str
    target: str


RUNTIME = RemoteResource(
    key=f"runtime:{config.RUNTIME_MODULE}",
    kind="module",
    url=config.RUNTIME_URL,
    version=config.RUNTIME_VERSION,
    target=config.RUNTIME_MODULE,
)

MODEL_DEFINITION = RemoteResource(
    key=f"model:{config.MODEL_VARIANT}@{config.MODEL_RELEASE}",
    kind="file",
    url=config.MODEL_URL,
    version=config.MODEL_RELEASE,
    target=f"{config.MODEL_VARIANT}.pt",
)


class ResourceRegistry:
    """ What has already been fetched in this process, keyed by resource identity """

    def __init__(self, cache_dir=config.MODEL_DIR, timeout=config.DOWNLOAD_TIMEOUT):
        self.cache_dir_ = cache_dir
        self.timeout_ = timeout
        self.active_ = {}

    def __str__(self):
        return f"ResourceRegistry(Cache: {self.cache_dir_}, Active: {sorted(self.active_)})"

    def is_active(self, key):
        return key in self.active_

    def get(self, key):
        return self.active_.get(key)

    async def fetch_and_activate(self, resource):
        """ No-op when already active, otherwise fetches off the event loop. Raises FetchError """
        if resource.key in self.active_:
            log(f"{resource.key} already active, skipping fetch", "DEBUG")
            return self.active_[resource.key]

        if resource.kind == "module":
            activation = await asyncio.to_thread(self._import_module, resource)
        elif resource.kind == "file":
            activation = await asyncio.to_thread(self._fetch_file, resource)
        else:
            raise FetchError(f"Unknown resource kind '{resource.kind}' for {resource.key}")

        self.active_[resource.key] = activation
        return activation

    def _import_module(self, resource):
        try:
            module = importlib.import_module(resource.target)
        except Exception as e:
            raise FetchError(
                f"Runtime '{resource.target}' is not available ({e}). "
                f"Install version {resource.version} from {resource.url}"
            ) from e

        installed = getattr(module, "__version__", "unknown")
        if installed != resource.version:
            log(f"{resource.target} {installed} found, pinned version is {resource.version}", "WARNING")
        return module

    def _fetch_file(self, resource):
        path = os.path.join(self.cache_dir_, resource.target)
        if os.path.exists(path):
            log(f"Using cached {path}", "INFO")
            return path

        os.makedirs(self.cache_dir_, exist_ok=True)
        log(f"Downloading {resource.url} -> {path} ...", "INFO")

        # Temp file in the same dir so the final move is atomic, a torn download never looks valid
        fd, tmp_path = tempfile.mkstemp(dir=self.cache_dir_, suffix=".part")
        try:
            with os.fdopen(fd, "wb") as f:
                with requests.get(resource.url, stream=True, timeout=self.timeout_) as response:
                    response.raise_for_status()
                    for chunk in response.iter_content(chunk_size=1 << 16):
                        if chunk:
                            f.write(chunk)
            os.replace(tmp_path, path)
        except (requests.RequestException, OSError) as e:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise FetchError(f"Failed to load {resource.url}: {e}") from e

        return path
