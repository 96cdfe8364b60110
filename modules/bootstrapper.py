# modules/bootstrapper.py

##################################### Imports #####################################
# Libraries
import asyncio

# Modules
import config
from modules.errors import AiPipelineError, BackendInitError, LoadError
from modules.resources import RUNTIME, MODEL_DEFINITION
from modules.state import AiEngineState, BackendChoice
from modules.utils import log

###################################################################################

class AiBootstrapper:
    """
    Brings the AI engine up in the background: runtime -> model definition -> backend -> weights.
    Runs to READY or FAILED, never touches the camera. Only the latest attempt may write state.
    """

    def __init__(self, state, registry, engine, run_on_gpu=config.RUN_ON_GPU,
                 preferred_backend=config.PREFERRED_BACKEND, fallback_backend=config.FALLBACK_BACKEND,
                 runtime=RUNTIME, model_definition=MODEL_DEFINITION):
        self.state = state
        self.registry_ = registry
        self.engine_ = engine
        self.run_on_gpu_ = run_on_gpu
        self.backends_ = {
            BackendChoice.PREFERRED: preferred_backend,
            BackendChoice.FALLBACK: fallback_backend,
        }
        self.runtime_ = runtime
        self.model_definition_ = model_definition

        self.generation_ = 0

    def __str__(self):
        return f"AiBootstrapper(Attempt: {self.generation_}, State: {self.state.ai_state.name})"

    async def bootstrap(self):
        """ One full attempt, returns the AiEngineState it ended in (from this attempt's view) """
        self.generation_ += 1
        generation = self.generation_

        # Whatever a previous attempt left behind is not reused
        self.state.discard_model()
        self.state.clear_error()

        try:
            # 1. Runtime
            self._advance(generation, AiEngineState.DOWNLOADING, "Downloading AI Engine...")
            await self.registry_.fetch_and_activate(self.runtime_)
            if not self._is_current(generation):
                return self._superseded(generation)
            self.state.log(f"{self.runtime_.target} runtime loaded.")

            # 2. Model definition
            self._advance(generation, AiEngineState.DOWNLOADING, "Downloading Model Definition...")
            weights_path = await self.registry_.fetch_and_activate(self.model_definition_)
            if not self._is_current(generation):
                return self._superseded(generation)
            self.state.log(f"{self.model_definition_.target} loaded.")

            # 3. Backend
            self._advance(generation, AiEngineState.INITIALIZING, "Initializing Neural Network...")
            choice, device = await self._select_backend()
            if not self._is_current(generation):
                return self._superseded(generation)

            # 4. Weights, the slow one
            self._advance(generation, AiEngineState.INITIALIZING, "Fetching Intelligence (6MB)...")
            model = await self._load_model(weights_path, device)
            if not self._is_current(generation):
                return self._superseded(generation)

        except Exception as e:
            if not self._is_current(generation):
                return self._superseded(generation)
            return self._fail(e)

        self.state.publish_model(model, choice)
        self.state.set_ai_state(AiEngineState.READY, "AI Ready")
        self.state.log("AI Engine Online & Ready to Detect.")
        return AiEngineState.READY

    async def retry(self):
        """ Explicit user retry, starts over from the runtime step """
        self.state.log("Retrying AI load...")
        return await self.bootstrap()

    async def _select_backend(self):
        """ Preferred backend if it comes up, baseline otherwise. Only both failing is fatal """
        if self.run_on_gpu_:
            device = self.backends_[BackendChoice.PREFERRED]
            try:
                await asyncio.to_thread(self.engine_.activate_backend, device)
                self.state.log(f"{device.upper()} Backend Active.")
                return BackendChoice.PREFERRED, device
            except Exception as e:
                log(f"{device} backend failed ({e}), falling back to {self.backends_[BackendChoice.FALLBACK]}", "WARNING")
        else:
            log("RUN_ON_GPU is off, going straight to the baseline backend", "INFO")

        device = self.backends_[BackendChoice.FALLBACK]
        try:
            await asyncio.to_thread(self.engine_.activate_backend, device)
        except BackendInitError:
            raise
        except Exception as e:
            raise BackendInitError(f"Baseline backend '{device}' failed to initialize: {e}") from e

        self.state.log(f"{device.upper()} Backend Active (Backup Mode).")
        return BackendChoice.FALLBACK, device

    async def _load_model(self, weights_path, device):
        try:
            return await asyncio.to_thread(self.engine_.load_model, weights_path, device)
        except AiPipelineError:
            raise
        except Exception as e:
            raise LoadError(f"Model load failed: {e}") from e

    def _is_current(self, generation):
        return generation == self.generation_

    def _advance(self, generation, ai_state, status_text):
        if self._is_current(generation):
            self.state.set_ai_state(ai_state, status_text)

    def _superseded(self, generation):
        log(f"Bootstrap attempt {generation} superseded by attempt {self.generation_}, result dropped", "DEBUG")
        return None

    def _fail(self, error):
        self.state.discard_model()
        self.state.set_error(f"AI Load Failed. Check Internet. ({error})")
        self.state.set_ai_state(AiEngineState.FAILED, "AI Failed")
        self.state.log(f"Critical AI Error: {error}", "ERROR")
        return AiEngineState.FAILED
