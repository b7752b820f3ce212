"""Catalog of TVM ``config.cmake`` switches and their projection to CMake defines.

Each :class:`BuildOption` member carries its CMake key, the kind of value it
accepts and a short description. Declaration order is emission order, so the
same settings always produce the same ``-D`` sequence and CMake does not
reconfigure spuriously.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Tuple, Union

from .errors import InvalidOptionValue, UnknownBuildOption


class OptionKind(str, Enum):
    BOOL = "bool"
    TRI_STATE = "tri-state"
    TEXT = "text"
    PATH = "path"


class Switch(str, Enum):
    ON = "ON"
    OFF = "OFF"


TriState = Union[Switch, str, Path]
OptionValue = Union[bool, str, Path, Switch]

_TRUE_WORDS = {"on", "true", "yes", "1"}
_FALSE_WORDS = {"off", "false", "no", "0"}

_EXPECTED_FORMS: Dict[OptionKind, Tuple[str, ...]] = {
    OptionKind.BOOL: ("on", "off", "true", "false", "yes", "no", "1", "0"),
    OptionKind.TRI_STATE: ("on", "off", "<path>"),
    OptionKind.TEXT: ("<text>",),
    OptionKind.PATH: ("<path>",),
}


class BuildOption(Enum):
    """Closed set of build switches understood by TVM's CMake project."""

    USE_CUDA = ("USE_CUDA", OptionKind.TRI_STATE, "Build with CUDA (ON, OFF or the CUDA toolkit path)")
    USE_OPENCL = ("USE_OPENCL", OptionKind.TRI_STATE, "Build with OpenCL (ON, OFF or the OpenCL SDK path)")
    USE_VULKAN = ("USE_VULKAN", OptionKind.TRI_STATE, "Build with Vulkan (ON, OFF or the Vulkan SDK path)")
    USE_METAL = ("USE_METAL", OptionKind.BOOL, "Build with Metal")
    USE_ROCM = ("USE_ROCM", OptionKind.TRI_STATE, "Build with ROCm (ON, OFF or the ROCm path)")
    ROCM_PATH = ("ROCM_PATH", OptionKind.PATH, "Location of the ROCm installation")
    USE_HEXAGON_DEVICE = ("USE_HEXAGON_DEVICE", OptionKind.TEXT, "Hexagon device mode (sim or device)")
    USE_HEXAGON_SDK = ("USE_HEXAGON_SDK", OptionKind.PATH, "Location of the Hexagon SDK")
    USE_RPC = ("USE_RPC", OptionKind.BOOL, "Build the RPC runtime")
    USE_THREADS = ("USE_THREADS", OptionKind.BOOL, "Build with thread support")
    USE_LLVM = ("USE_LLVM", OptionKind.TRI_STATE, "Build with LLVM (ON, OFF or the llvm-config path)")
    USE_STACKVM_RUNTIME = ("USE_STACKVM_RUNTIME", OptionKind.BOOL, "Include the stackvm runtime")
    USE_GRAPH_EXECUTOR = ("USE_GRAPH_EXECUTOR", OptionKind.BOOL, "Include the graph executor")
    USE_GRAPH_EXECUTOR_DEBUG = ("USE_GRAPH_EXECUTOR_DEBUG", OptionKind.BOOL, "Include the debug graph executor")
    USE_PROFILER = ("USE_PROFILER", OptionKind.BOOL, "Build with the profiling executors")
    USE_OPENMP = ("USE_OPENMP", OptionKind.TEXT, "OpenMP flavour for the thread pool (none, gnu or intel)")
    USE_RELAY_DEBUG = ("USE_RELAY_DEBUG", OptionKind.BOOL, "Enable Relay debug mode")
    USE_RTTI = ("USE_RTTI", OptionKind.BOOL, "Build with RTTI")
    USE_MSVC_MT = ("USE_MSVC_MT", OptionKind.BOOL, "Link the static MSVC runtime")
    USE_MICRO = ("USE_MICRO", OptionKind.BOOL, "Build with micro TVM support")
    INSTALL_DEV = ("INSTALL_DEV", OptionKind.BOOL, "Install compiler infrastructure headers and libraries")
    HIDE_PRIVATE_SYMBOLS = ("HIDE_PRIVATE_SYMBOLS", OptionKind.BOOL, "Hide private symbols of the shared library")
    USE_FALLBACK_STL_MAP = ("USE_FALLBACK_STL_MAP", OptionKind.BOOL, "Use the STL map instead of the TVM map")
    USE_ETHOSN = ("USE_ETHOSN", OptionKind.TRI_STATE, "Build with Arm Ethos-N (ON, OFF or the driver stack path)")
    USE_ETHOSN_HW = ("USE_ETHOSN_HW", OptionKind.BOOL, "Run Ethos-N on hardware instead of the mock")
    USE_INDEX_DEFAULT_I64 = ("INDEX_DEFAULT_I64", OptionKind.BOOL, "Use 64-bit indices by default")
    USE_TF_TVMDSOOP = ("USE_TF_TVMDSOOP", OptionKind.BOOL, "Build the TensorFlow TVMDSOOp custom op")
    USE_PT_TVMDSOOP = ("USE_PT_TVMDSOOP", OptionKind.BOOL, "Build the PyTorch TVMDSOOp custom op")
    USE_BYODT_POSIT = ("USE_BYODT_POSIT", OptionKind.BOOL, "Build with the posit custom datatype")
    USE_BLAS = ("USE_BLAS", OptionKind.TEXT, "BLAS library (none, openblas, mkl, atlas or apple)")
    USE_MKL = ("USE_MKL", OptionKind.TRI_STATE, "Build with Intel MKL (ON, OFF or the MKL path)")
    USE_MKLDNN = ("USE_MKLDNN", OptionKind.TRI_STATE, "Build with MKLDNN (ON, OFF or the MKLDNN path)")
    USE_DNNL_CODEGEN = ("USE_DNNL_CODEGEN", OptionKind.BOOL, "Build the DNNL BYOC codegen")
    USE_CUDNN = ("USE_CUDNN", OptionKind.BOOL, "Build with cuDNN")
    USE_CUBLAS = ("USE_CUBLAS", OptionKind.BOOL, "Build with cuBLAS")
    USE_THRUST = ("USE_THRUST", OptionKind.BOOL, "Build with Thrust")
    USE_MIOPEN = ("USE_MIOPEN", OptionKind.BOOL, "Build with MIOpen")
    USE_ROCBLAS = ("USE_ROCBLAS", OptionKind.BOOL, "Build with rocBLAS")
    USE_SORT = ("USE_SORT", OptionKind.BOOL, "Build with the contrib sort functions")
    USE_NNPACK = ("USE_NNPACK", OptionKind.BOOL, "Build with NNPACK")
    USE_RANDOM = ("USE_RANDOM", OptionKind.BOOL, "Build with the contrib random functions")
    USE_MICRO_STANDALONE_RUNTIME = (
        "USE_MICRO_STANDALONE_RUNTIME",
        OptionKind.BOOL,
        "Build the micro standalone runtime",
    )
    USE_CPP_RPC = ("USE_CPP_RPC", OptionKind.BOOL, "Build the C++ RPC server")
    USE_TFLITE = ("USE_TFLITE", OptionKind.TRI_STATE, "Build with TFLite (ON, OFF or the TFLite library path)")
    USE_TENSORFLOW_PATH = ("USE_TENSORFLOW_PATH", OptionKind.PATH, "Location of the TensorFlow source tree")
    USE_FLATBUFFERS_PATH = ("USE_FLATBUFFERS_PATH", OptionKind.PATH, "Location of the flatbuffers installation")
    USE_EDGETPU = ("USE_EDGETPU", OptionKind.PATH, "Location of the EdgeTPU library")
    USE_COREML = ("USE_COREML", OptionKind.BOOL, "Build with CoreML")
    USE_TARGET_ONNX = ("USE_TARGET_ONNX", OptionKind.BOOL, "Build the ONNX codegen")
    USE_ARM_COMPUTE_LIB = ("USE_ARM_COMPUTE_LIB", OptionKind.BOOL, "Build the Arm Compute Library codegen")
    USE_ARM_COMPUTE_LIB_GRAPH_EXECUTOR = (
        "USE_ARM_COMPUTE_LIB_GRAPH_EXECUTOR",
        OptionKind.TRI_STATE,
        "Build the Arm Compute Library runtime (ON, OFF or the library path)",
    )
    USE_TENSORRT_CODEGEN = ("USE_TENSORRT_CODEGEN", OptionKind.BOOL, "Build the TensorRT codegen")
    USE_TENSORRT_RUNTIME = (
        "USE_TENSORRT_RUNTIME",
        OptionKind.TRI_STATE,
        "Build the TensorRT runtime (ON, OFF or the TensorRT path)",
    )
    USE_RUST_EXT = ("USE_RUST_EXT", OptionKind.TEXT, "Rust extension linkage (OFF, STATIC or DYNAMIC)")
    USE_VITIS_AI = ("USE_VITIS_AI", OptionKind.BOOL, "Build with Vitis AI")
    USE_LIBBACKTRACE = ("USE_LIBBACKTRACE", OptionKind.TEXT, "Use libbacktrace for stack traces (AUTO, ON or OFF)")
    BUILD_STATIC_RUNTIME = ("BUILD_STATIC_RUNTIME", OptionKind.BOOL, "Build the runtime as a static library")
    USE_CCACHE = ("USE_CCACHE", OptionKind.TEXT, "Compile through ccache (AUTO, ON or OFF)")
    USE_PAPI = ("USE_PAPI", OptionKind.TRI_STATE, "Build with PAPI counters (ON, OFF or the papi.pc path)")
    USE_GTEST = ("USE_GTEST", OptionKind.TEXT, "Build the C++ unit tests (AUTO, ON or OFF)")
    USE_ANTLR = ("USE_ANTLR", OptionKind.TRI_STATE, "Build with ANTLR (ON, OFF or the ANTLR jar path)")
    USE_VTA_TSIM = ("USE_VTA_TSIM", OptionKind.BOOL, "Build the VTA TSIM driver")
    USE_VTA_FPGA = ("USE_VTA_FPGA", OptionKind.BOOL, "Build the VTA FPGA driver")
    USE_CLML = ("USE_CLML", OptionKind.TRI_STATE, "Build the OpenCL ML codegen (ON, OFF or the CLML SDK path)")
    SUMMARIZE = ("SUMMARIZE", OptionKind.BOOL, "Print a configuration summary")

    def __init__(self, key: str, kind: OptionKind, description: str) -> None:
        self.key = key
        self.kind = kind
        self.description = description

    @property
    def dest(self) -> str:
        return self.name.lower()

    @property
    def flag(self) -> str:
        return "--" + self.dest.replace("_", "-")

    @property
    def expected_forms(self) -> Tuple[str, ...]:
        return _EXPECTED_FORMS[self.kind]

    @classmethod
    def lookup(cls, name: "str | BuildOption") -> "BuildOption":
        """Find an option by member name, dest or CLI flag spelling."""
        if isinstance(name, BuildOption):
            return name
        normalized = str(name).strip().lstrip("-").replace("-", "_").upper()
        try:
            return cls[normalized]
        except KeyError:
            pass
        for option in cls:
            if option.key == normalized:
                return option
        raise UnknownBuildOption(str(name))


def parse_bool(key: str, raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if text in _TRUE_WORDS:
        return True
    if text in _FALSE_WORDS:
        return False
    raise InvalidOptionValue(key, raw, _EXPECTED_FORMS[OptionKind.BOOL])


def parse_tri_state(raw: Any, *, key: str = "value") -> TriState:
    """Parse ``on``/``off`` (any case) or a filesystem path.

    Path text is kept as typed (only surrounding whitespace is stripped) so the
    define CMake sees is exactly what the user wrote.
    """
    if isinstance(raw, Switch):
        return raw
    if isinstance(raw, bool):
        return Switch.ON if raw else Switch.OFF
    if isinstance(raw, Path):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidOptionValue(key, raw, _EXPECTED_FORMS[OptionKind.TRI_STATE])
    text = raw.strip()
    lowered = text.lower()
    if lowered == "on":
        return Switch.ON
    if lowered == "off":
        return Switch.OFF
    return text


def coerce_option_value(option: BuildOption, raw: Any) -> OptionValue:
    """Validate ``raw`` against the option's kind and return the typed value."""
    if option.kind is OptionKind.BOOL:
        return parse_bool(option.key, raw)
    if option.kind is OptionKind.TRI_STATE:
        return parse_tri_state(raw, key=option.key)
    if option.kind is OptionKind.TEXT:
        if isinstance(raw, bool) or not isinstance(raw, (str, int, float)):
            raise InvalidOptionValue(option.key, raw, option.expected_forms)
        return str(raw)
    if isinstance(raw, Path):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidOptionValue(option.key, raw, option.expected_forms)
    return raw.strip()


def format_option_value(option: BuildOption, value: OptionValue) -> str:
    if option.kind is OptionKind.BOOL:
        return Switch.ON.value if value else Switch.OFF.value
    if isinstance(value, Switch):
        return value.value
    return str(value)


@dataclass(frozen=True)
class UserSettings:
    """The options a user explicitly set; anything absent is never emitted."""

    values: Mapping[BuildOption, OptionValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        checked: Dict[BuildOption, OptionValue] = {}
        for option, value in self.values.items():
            option = BuildOption.lookup(option)
            checked[option] = coerce_option_value(option, value)
        object.__setattr__(self, "values", MappingProxyType(checked))

    @classmethod
    def from_mapping(cls, data: Mapping[Any, Any] | None) -> "UserSettings":
        if not data:
            return cls()
        return cls({BuildOption.lookup(name): value for name, value in data.items() if value is not None})

    def merged(self, other: "UserSettings") -> "UserSettings":
        """Return a copy where the options set in ``other`` win."""
        combined = dict(self.values)
        combined.update(other.values)
        return UserSettings(combined)

    def get(self, option: BuildOption) -> OptionValue | None:
        return self.values.get(option)

    def __contains__(self, option: object) -> bool:
        return option in self.values

    def __len__(self) -> int:
        return len(self.values)

    def cmake_defines(self) -> List[Tuple[str, str]]:
        defines: List[Tuple[str, str]] = []
        for option in BuildOption:
            if option in self.values:
                defines.append((option.key, format_option_value(option, self.values[option])))
        return defines
