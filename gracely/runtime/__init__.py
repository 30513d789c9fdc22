from gracely.runtime.detection import RuntimeEnvironment, detect_runtime, resolve_runtime

__all__ = ["RuntimeEnvironment", "detect_runtime", "resolve_runtime"]
