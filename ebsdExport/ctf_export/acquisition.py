"""Resolution of microscope acquisition parameters for the CTF header."""

from __future__ import annotations

from abc import ABC, abstractmethod
import configparser
from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Callable, Optional, Sequence

from ebsdExport.ctf_export.errors import InvalidParameter, UserCancelled
from ebsdExport.ctf_export.model import (
    AcquisitionParameter,
    NumericParameter,
    TextParameter,
)

# Name and print precision of each header parameter; None marks free text.
ACQUISITION_PARAMETERS: tuple[tuple[str, Optional[int]], ...] = (
    ("Mag", 4),
    ("Coverage", 0),
    ("Device", None),
    ("KV", 4),
    ("TiltAngle", 4),
    ("TiltAxis", 0),
    ("DetectorOrientationE1", 4),
    ("DetectorOrientationE2", 4),
    ("DetectorOrientationE3", 4),
    ("WorkingDistance", 4),
    ("InsertionDistance", 4),
)

ACQUISITION_PARAMETER_NAMES = tuple(name for name, _ in ACQUISITION_PARAMETERS)


@dataclass(frozen=True)
class CprMetadata:
    """Acquisition metadata imported from an Oxford project (.cpr) file.

    Parameters:
        magnification: Microscope magnification.
        coverage: Coverage percentage.
        device: Acquisition device name.
        kv: Accelerating voltage in kV.
        tilt_angle: Sample tilt angle in degrees.
        tilt_axis: Sample tilt axis.
        detector_euler1: Detector orientation Euler angle 1.
        detector_euler2: Detector orientation Euler angle 2.
        detector_euler3: Detector orientation Euler angle 3.
    """

    magnification: float
    coverage: float
    device: str
    kv: float
    tilt_angle: float
    tilt_axis: float
    detector_euler1: float
    detector_euler2: float
    detector_euler3: float

    @classmethod
    def from_cpr(cls, path: Path) -> "CprMetadata":
        """Read the job and SEM sections of a .cpr file.

        Parameters:
            path: Path to the .cpr file.

        Returns:
            CprMetadata populated from the file.
        """

        path = Path(path)
        parser = configparser.ConfigParser(interpolation=None, strict=False)
        try:
            with path.open("r", encoding="utf-8", errors="replace") as handle:
                parser.read_file(handle)
        except OSError as exc:
            raise InvalidParameter(f"Cannot read cpr file {path}: {exc}") from exc
        except configparser.Error as exc:
            raise InvalidParameter(f"Malformed cpr file {path}: {exc}") from exc
        return cls(
            magnification=_cpr_float(parser, "Job", "Magnification"),
            coverage=_cpr_float(parser, "Job", "Coverage"),
            device=_cpr_value(parser, "Job", "Device"),
            kv=_cpr_float(parser, "Job", "kV"),
            tilt_angle=_cpr_float(parser, "Job", "TiltAngle"),
            tilt_axis=_cpr_float(parser, "Job", "TiltAxis"),
            detector_euler1=_cpr_float(parser, "SEMFields", "DOEuler1"),
            detector_euler2=_cpr_float(parser, "SEMFields", "DOEuler2"),
            detector_euler3=_cpr_float(parser, "SEMFields", "DOEuler3"),
        )


def _cpr_value(parser: configparser.ConfigParser, section: str, key: str) -> str:
    for name in parser.sections():
        if name.lower() == section.lower() and parser.has_option(name, key):
            return parser.get(name, key).strip()
    raise InvalidParameter(f"Missing '{key}' in cpr section [{section}].")


def _cpr_float(parser: configparser.ConfigParser, section: str, key: str) -> float:
    value = _cpr_value(parser, section, key)
    try:
        return float(value)
    except ValueError as exc:
        raise InvalidParameter(
            f"Cpr value '{key}' in [{section}] is not numeric: {value!r}."
        ) from exc


class ParameterPrompt(ABC):
    """Interactive collaborator that collects acquisition parameters."""

    @abstractmethod
    def collect_parameters(
        self, names: Sequence[str], defaults: Sequence[str]
    ) -> Optional[list[str]]:
        """Ask the user for one value per parameter name.

        Parameters:
            names: Parameter names in header order.
            defaults: Default text for each parameter.

        Returns:
            One string per name, or None when the user cancelled.
        """


class ConsoleParameterPrompt(ParameterPrompt):
    """Labeled-field prompt on the console.

    Parameters:
        input_func: Function used to read a line (defaults to input).
    """

    def __init__(self, input_func: Optional[Callable[[str], str]] = None) -> None:
        self._input = input_func or input

    def collect_parameters(
        self, names: Sequence[str], defaults: Sequence[str]
    ) -> Optional[list[str]]:
        answers: list[str] = []
        for name, default in zip(names, defaults):
            try:
                answer = self._input(f"{name}: [{default}] ")
            except (EOFError, KeyboardInterrupt):
                return None
            answer = answer.strip()
            answers.append(answer if answer else default)
        return answers


def resolve_acquisition_parameters(
    metadata: Optional[CprMetadata] = None,
    manual: bool = False,
    prompt: Optional[ParameterPrompt] = None,
    logger: Optional[logging.Logger] = None,
) -> tuple[AcquisitionParameter, ...]:
    """Resolve the 11 acquisition parameters written into the CTF header.

    Imported metadata takes priority, then manual entry through the prompt,
    and finally zeros for every parameter.

    Parameters:
        metadata: Optional metadata imported from a .cpr file.
        manual: Whether to collect the values through the prompt.
        prompt: Prompt collaborator used for manual entry.
        logger: Optional logger instance.

    Returns:
        Tuple of 11 acquisition parameters in header order.
    """

    logger = logger or logging.getLogger(__name__)
    if metadata is not None:
        logger.info("Microscope acquisition parameters imported from cpr metadata")
        values = [
            metadata.magnification,
            metadata.coverage,
            metadata.device,
            metadata.kv,
            metadata.tilt_angle,
            metadata.tilt_axis,
            metadata.detector_euler1,
            metadata.detector_euler2,
            metadata.detector_euler3,
            0.0,
            0.0,
        ]
    elif manual:
        if prompt is None:
            raise ValueError("Manual parameter entry requested without a prompt.")
        logger.info("Insert microscope acquisition parameters manually")
        defaults = ["0"] * len(ACQUISITION_PARAMETER_NAMES)
        answers = prompt.collect_parameters(ACQUISITION_PARAMETER_NAMES, defaults)
        if answers is None:
            raise UserCancelled("Acquisition parameter entry cancelled by user.")
        if len(answers) != len(ACQUISITION_PARAMETER_NAMES):
            raise InvalidParameter(
                f"Expected {len(ACQUISITION_PARAMETER_NAMES)} parameter values, "
                f"got {len(answers)}."
            )
        values = list(answers)
    else:
        logger.info("Microscope acquisition parameters not available")
        values = [0.0] * len(ACQUISITION_PARAMETER_NAMES)
    return tuple(
        _make_parameter(name, precision, value)
        for (name, precision), value in zip(ACQUISITION_PARAMETERS, values)
    )


def _make_parameter(
    name: str, precision: Optional[int], value: object
) -> AcquisitionParameter:
    """Wrap a raw value into its tagged parameter type.

    Parameters:
        name: Parameter name.
        precision: Decimal places, or None for free text.
        value: Raw value from the metadata source.

    Returns:
        NumericParameter or TextParameter.
    """

    if precision is None:
        if isinstance(value, float) and value.is_integer():
            return TextParameter(name=name, value=str(int(value)))
        return TextParameter(name=name, value=str(value))
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidParameter(
            f"Acquisition parameter '{name}' must be numeric, got {value!r}."
        ) from exc
    return NumericParameter(name=name, value=number, precision=precision)
