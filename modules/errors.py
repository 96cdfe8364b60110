# modules/errors.py

###################################################################################
#   Camera side and AI side fail independently, so they get separate roots.
###################################################################################

class CaptureError(Exception):
    """ Camera could not start: permission denied, no device, or no frames """


class AiPipelineError(Exception):
    """ Anything that stops the AI engine from becoming ready """


class FetchError(AiPipelineError):
    """ A remote resource (runtime or model definition) could not be made available """


class BackendInitError(AiPipelineError):
    """ A compute backend refused to initialize """


class LoadError(AiPipelineError):
    """ Model weights could not be instantiated on the selected backend """


class DetectionError(Exception):
    """ A single detect() call failed, only ever recovered inside the render loop """
