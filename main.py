#main.py

##################################### Imports #####################################
# Libraries
import argparse
import asyncio

import warnings
warnings.filterwarnings("ignore")

# Modules
import config
from modules.bootstrapper import AiBootstrapper
from modules.camera import FrameSourceAdapter
from modules.detector import UltralyticsEngine
from modules.interface import DetectionHUD
from modules.orchestrator import DetectionApp
from modules.resources import ResourceRegistry
from modules.state import VisionState
from modules.utils import log

###################################################################################

def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Live camera with object detection overlay, camera first")
    ap.add_argument("--camera", type=int, default=config.CAMERA_INDEX, help="camera index")
    ap.add_argument("--width", type=int, default=config.FRAME_WIDTH)
    ap.add_argument("--height", type=int, default=config.FRAME_HEIGHT)
    ap.add_argument("--model-dir", default=config.MODEL_DIR, help="where downloaded weights are cached")
    ap.add_argument("--conf", type=float, default=config.DET_CONF_THRESHOLD, help="detection confidence threshold")
    ap.add_argument("--cpu", action="store_true", help="skip the GPU backend")
    ap.add_argument("--debug", action="store_true", help="print per-frame diagnostics")
    return ap.parse_args(argv)


def build_app(args):
    """ Wires the components, nothing starts here """
    state = VisionState()

    adapter = FrameSourceAdapter(src=args.camera)
    registry = ResourceRegistry(cache_dir=args.model_dir)
    engine = UltralyticsEngine(threshold=args.conf, warmup_size=(args.width, args.height))
    bootstrapper = AiBootstrapper(state, registry, engine, run_on_gpu=config.RUN_ON_GPU and not args.cpu)

    return DetectionApp(adapter, bootstrapper, state, width=args.width, height=args.height)


async def run(args):
    log("System starting...", "INFO")

    # 1. Build
    app = build_app(args)
    hud = DetectionHUD(app, width=args.width, height=args.height)

    # 2. Camera first, AI in the background
    await app.start()
    log(f"App state: {app}", "INFO")

    # 3. Show until the user quits
    try:
        await hud.run()
    finally:
        # 4. Cleanup: Detach hardware
        await app.shutdown()


def main(argv=None):
    args = parse_args(argv)
    if args.debug:
        config.DEBUG_MODE = True

    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        # Ctrl+C stops the loop
        log("User interrupted.", "INFO")

if __name__ == "__main__":
    main()
