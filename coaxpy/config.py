import json
import logging
from numbers import Number
from pathlib import Path

import numpy as np
import yaml

from coaxpy.baked import BakedOperator
from coaxpy.coaxial import CoaxialTranslation
from coaxpy.ops import ExpansionTransform
from coaxpy.rotation import RotationCoefficients


class Config:
    """
    Transform configuration read from a JSON or YAML file.

    The file provides the maximum degree and, optionally, a coaxial translation
    and a rotation:

    ```yaml
    nmax: 7
    translation:
      distance: 1.5
      wavenumber: {real: 2.0, imag: 0.1}
      regular: true
    rotation:
      theta: 30
      phi: 10
      chi: -45
      degrees: true
    ```

    Args:
        path_config (str): Path to the ``.json``, ``.yaml`` or ``.yml`` file.
    """

    config: dict = {}

    def __init__(self, path_config: str):
        if not isinstance(path_config, str):
            raise ValueError("The config file path needs to be a string!")
        _path_config = Path(path_config)
        self.file_type = _path_config.suffix
        match self.file_type:
            case ".json":
                with open(path_config) as data:
                    config = json.load(data)
            case ".yaml" | ".yml":
                with open(path_config) as data:
                    config = yaml.safe_load(data)
            case _:
                raise ValueError(
                    "The provided config file needs to be a json or yaml file!"
                )
        if config is None:
            raise ValueError(f"Could not read config file {path_config}. It is empty.")

        self.log = logging.getLogger(self.__class__.__module__)
        self.__read(config)

    @classmethod
    def from_mapping(cls, config: dict) -> "Config":
        """Build a configuration from an already parsed mapping."""
        instance = cls.__new__(cls)
        instance.file_type = ""
        instance.log = logging.getLogger(cls.__module__)
        instance.__read(config)
        return instance

    def __read(self, config: dict):
        if not isinstance(config, dict):
            raise ValueError("The configuration needs to be a mapping.")
        self.config = config

        if "nmax" not in config:
            raise ValueError("The configuration needs a 'nmax' entry.")
        nmax = config["nmax"]
        if isinstance(nmax, bool) or not isinstance(nmax, int) or nmax < 0:
            raise ValueError(f"'nmax' needs to be a non-negative integer, got {nmax!r}.")
        self.nmax = nmax

        self.translation_parameters = None
        if "translation" in config:
            translation = config["translation"]
            if not isinstance(translation, dict):
                raise ValueError("The 'translation' section needs to be a mapping.")
            if "distance" not in translation or "wavenumber" not in translation:
                raise ValueError(
                    "The 'translation' section needs 'distance' and 'wavenumber'."
                )
            self.translation_parameters = dict(
                distance=float(translation["distance"]),
                wavenumber=self.__complex(translation["wavenumber"], "wavenumber"),
                regular=bool(translation.get("regular", True)),
            )

        self.rotation_parameters = None
        if "rotation" in config:
            rotation = config["rotation"]
            if not isinstance(rotation, dict):
                raise ValueError("The 'rotation' section needs to be a mapping.")
            missing = [key for key in ("theta", "phi", "chi") if key not in rotation]
            if missing:
                raise ValueError(f"The 'rotation' section is missing {missing}.")
            angles = np.array(
                [float(rotation[key]) for key in ("theta", "phi", "chi")]
            )
            if rotation.get("degrees", False):
                angles = np.deg2rad(angles)
            self.rotation_parameters = dict(
                theta=float(angles[0]), phi=float(angles[1]), chi=float(angles[2])
            )

        if self.translation_parameters is None and self.rotation_parameters is None:
            self.log.warning(
                "Neither a translation nor a rotation has been configured."
            )

    @staticmethod
    def __complex(value, key: str) -> complex:
        if isinstance(value, Number):
            return complex(value)
        elif isinstance(value, list) and len(value) == 2:
            return complex(float(value[0]), float(value[1]))
        elif isinstance(value, dict):
            return complex(float(value.get("real", 0)), float(value.get("imag", 0)))
        raise ValueError(
            f"'{key}' needs to be a number, a [real, imag] pair or a {{real, imag}} mapping."
        )

    def translation(self) -> CoaxialTranslation:
        """Coaxial translation engine described by the configuration."""
        if self.translation_parameters is None:
            raise ValueError("No 'translation' section has been configured.")
        return CoaxialTranslation(**self.translation_parameters)

    def rotation(self) -> RotationCoefficients:
        """Rotation engine described by the configuration."""
        if self.rotation_parameters is None:
            raise ValueError("No 'rotation' section has been configured.")
        return RotationCoefficients(**self.rotation_parameters)

    def bake(self) -> dict[str, BakedOperator]:
        """Bake every configured engine for the configured ``nmax``."""
        operators = {}
        if self.translation_parameters is not None:
            operators["translation"] = self.translation().bake(self.nmax)
        if self.rotation_parameters is not None:
            operators["rotation"] = self.rotation().bake(self.nmax)
        self.log.info(f"Baked {sorted(operators)} for nmax={self.nmax}")
        return operators

    def transforms(self, baked: bool = True) -> dict[str, ExpansionTransform]:
        """
        Every configured transform, keyed by ``"translation"`` and ``"rotation"``.

        Args:
            baked (bool, optional): Return baked operators for ``nmax`` instead of the
                recurrence engines.

        Returns:
            (dict): Objects implementing :class:`coaxpy.ops.ExpansionTransform`.
        """
        if baked:
            return self.bake()
        engines: dict[str, ExpansionTransform] = {}
        if self.translation_parameters is not None:
            engines["translation"] = self.translation()
        if self.rotation_parameters is not None:
            engines["rotation"] = self.rotation()
        return engines
