# configuration.py
from __future__ import annotations

import logging
import os
import runpy
import sys
from pathlib import Path
from typing import Any, Optional

from .command import inside_directory
from .errors import ConfigurationError
from .log import setup_logger


class _Directives:
    """
    The `configuration` object seen by a configuration file.

    Forwards to the Configurator, but only for the directives its class
    declares, so typos in a configuration file are reported instead of
    silently creating new attributes.
    """

    def __init__(self, target: Configurator):
        object.__setattr__(self, "_target", target)

    def _check(self, name: str) -> None:
        target = object.__getattribute__(self, "_target")
        if name.startswith("_") or not hasattr(type(target), name):
            raise AttributeError(f"unknown directive '{name}'")

    def __getattr__(self, name: str) -> Any:
        self._check(name)
        return getattr(object.__getattribute__(self, "_target"), name)

    def __setattr__(self, name: str, value: Any) -> None:
        self._check(name)
        setattr(object.__getattribute__(self, "_target"), name, value)


class Configurator:
    """
    Base class for loaders of Python configuration files.

    A configuration file is plain Python evaluated with the name
    `configuration` bound to the loader. Subclasses declare the directives
    a file may use as class attributes, properties or methods:

        class BuildConfigurator(Configurator):
            name = None

            @property
            def jobs(self):
                return self._jobs

            @jobs.setter
            def jobs(self, value):
                if value < 1:
                    raise ConfigurationError("jobs must be positive")
                self._jobs = value

    build.cfg:

        configuration.name = "nightly"
        configuration.jobs = 4
        configuration.load_from_file("common.cfg")

    Override configuration() to post-process and validate the loaded data.
    """

    def __init__(self, config_file: str, logger: Optional[logging.Logger] = None):
        self.logger = logger or setup_logger()
        self.config_file = config_file
        self.wd: Optional[str] = None
        self._load_configuration(config_file)

    def configuration(self) -> Any:
        return self

    def load_from_file(self, filename: str) -> None:
        """
        Load another configuration file into this instance.

        Relative names that do not exist from the current directory are
        looked up next to the file currently being loaded.
        """
        if not os.path.exists(filename) and self.wd:
            filename = os.path.join(self.wd, filename)
        self._load_configuration(filename)

    def _load_configuration(self, filename: str) -> None:
        try:
            path = Path(filename).resolve()
            if not path.is_file():
                raise FileNotFoundError(f"Configuration file not found: {filename}")
            previous_wd = self.wd
            self.wd = str(path.parent)
            if self.wd not in sys.path:
                sys.path.insert(0, self.wd)
            try:
                with inside_directory(self.wd):
                    runpy.run_path(
                        str(path),
                        init_globals={"configuration": _Directives(self)},
                        run_name=f"patir_configuration_{path.stem}",
                    )
            finally:
                if previous_wd is not None:
                    self.wd = previous_wd
            self.logger.info("Configuration loaded from %s", filename)
        except ConfigurationError:
            raise
        except SyntaxError as e:
            self.logger.debug(e)
            raise ConfigurationError(
                f"Syntax error in the configuration file '{filename}':\n{e}"
            ) from e
        except AttributeError as e:
            self.logger.debug(e)
            raise ConfigurationError(
                f"Encountered an unknown directive in configuration file '{filename}':\n{e}"
            ) from e
        except Exception as e:
            self.logger.debug(e)
            raise ConfigurationError(str(e)) from e
