'''Falign backend plugins auto-import.'''
import logging

def _autoimport_plugins():
    import importlib
    for mod in (
        "falign.vision.detectors.haar",
        "falign.vision.detectors.scrfd",
        "falign.vision.aligners.lbf",
        "falign.vision.aligners.landmark68",
    ):
        try:
            importlib.import_module(mod)
        except ImportError as e:
            # optional engines; the registry reports what's available
            logging.getLogger("falign").debug("plugin %s unavailable: %s", mod, e)

_autoimport_plugins()
