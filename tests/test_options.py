from __future__ import annotations

from pathlib import Path
import unittest

from tvm_build.errors import InvalidOptionValue, UnknownBuildOption
from tvm_build.options import (
    BuildOption,
    OptionKind,
    Switch,
    UserSettings,
    coerce_option_value,
    format_option_value,
    parse_tri_state,
)


class TriStateParsingTests(unittest.TestCase):
    def test_keywords_are_case_insensitive(self) -> None:
        self.assertIs(parse_tri_state("on"), Switch.ON)
        self.assertIs(parse_tri_state("ON"), Switch.ON)
        self.assertIs(parse_tri_state("Off"), Switch.OFF)

    def test_other_text_is_a_path(self) -> None:
        self.assertEqual(parse_tri_state("path/to/x"), "path/to/x")
        self.assertEqual(parse_tri_state(" /opt/llvm/bin/llvm-config "), "/opt/llvm/bin/llvm-config")
        self.assertEqual(parse_tri_state(Path("/opt/cuda")), Path("/opt/cuda"))

    def test_path_text_is_kept_as_typed(self) -> None:
        self.assertEqual(parse_tri_state("./cuda/"), "./cuda/")
        self.assertEqual(parse_tri_state("~/llvm//bin/llvm-config"), "~/llvm//bin/llvm-config")

    def test_booleans_map_to_switches(self) -> None:
        self.assertIs(parse_tri_state(True), Switch.ON)
        self.assertIs(parse_tri_state(False), Switch.OFF)

    def test_empty_value_is_rejected_with_expected_forms(self) -> None:
        with self.assertRaises(InvalidOptionValue) as ctx:
            parse_tri_state("  ", key="USE_CUDA")
        self.assertEqual(ctx.exception.key, "USE_CUDA")
        self.assertEqual(ctx.exception.given, "  ")
        self.assertEqual(ctx.exception.expected_forms, ("on", "off", "<path>"))
        self.assertIn("USE_CUDA", str(ctx.exception))


class CoercionTests(unittest.TestCase):
    def test_bool_words(self) -> None:
        self.assertTrue(coerce_option_value(BuildOption.USE_RPC, "yes"))
        self.assertTrue(coerce_option_value(BuildOption.USE_RPC, "ON"))
        self.assertFalse(coerce_option_value(BuildOption.USE_RPC, "0"))
        self.assertFalse(coerce_option_value(BuildOption.USE_RPC, False))

    def test_bad_bool_is_rejected(self) -> None:
        with self.assertRaises(InvalidOptionValue) as ctx:
            coerce_option_value(BuildOption.USE_RPC, "maybe")
        self.assertEqual(ctx.exception.key, "USE_RPC")

    def test_text_and_path(self) -> None:
        self.assertEqual(coerce_option_value(BuildOption.USE_OPENMP, "gnu"), "gnu")
        self.assertEqual(coerce_option_value(BuildOption.ROCM_PATH, "/opt/rocm"), "/opt/rocm")
        self.assertEqual(coerce_option_value(BuildOption.ROCM_PATH, " ./rocm/ "), "./rocm/")
        with self.assertRaises(InvalidOptionValue):
            coerce_option_value(BuildOption.USE_OPENMP, True)
        with self.assertRaises(InvalidOptionValue):
            coerce_option_value(BuildOption.ROCM_PATH, "")

    def test_formatting(self) -> None:
        self.assertEqual(format_option_value(BuildOption.USE_RPC, True), "ON")
        self.assertEqual(format_option_value(BuildOption.USE_RPC, False), "OFF")
        self.assertEqual(format_option_value(BuildOption.USE_LLVM, Switch.OFF), "OFF")
        self.assertEqual(format_option_value(BuildOption.USE_LLVM, Path("path/to/x")), str(Path("path/to/x")))
        self.assertEqual(format_option_value(BuildOption.USE_BLAS, "openblas"), "openblas")


class CatalogTests(unittest.TestCase):
    def test_keys_are_unique(self) -> None:
        keys = [option.key for option in BuildOption]
        self.assertEqual(len(keys), len(set(keys)))

    def test_flag_and_dest(self) -> None:
        self.assertEqual(BuildOption.USE_CUDA.flag, "--use-cuda")
        self.assertEqual(BuildOption.USE_CUDA.dest, "use_cuda")
        self.assertIs(BuildOption.USE_LLVM.kind, OptionKind.TRI_STATE)

    def test_lookup_accepts_several_spellings(self) -> None:
        self.assertIs(BuildOption.lookup("use_cuda"), BuildOption.USE_CUDA)
        self.assertIs(BuildOption.lookup("--use-cuda"), BuildOption.USE_CUDA)
        self.assertIs(BuildOption.lookup("INDEX_DEFAULT_I64"), BuildOption.USE_INDEX_DEFAULT_I64)
        with self.assertRaises(UnknownBuildOption):
            BuildOption.lookup("use_quantum")


class UserSettingsTests(unittest.TestCase):
    def test_bool_projection(self) -> None:
        self.assertEqual(UserSettings({BuildOption.USE_RPC: True}).cmake_defines(), [("USE_RPC", "ON")])
        self.assertEqual(UserSettings({BuildOption.USE_RPC: False}).cmake_defines(), [("USE_RPC", "OFF")])

    def test_unset_options_are_not_emitted(self) -> None:
        self.assertEqual(UserSettings().cmake_defines(), [])
        defines = dict(UserSettings({BuildOption.USE_CUDA: "on"}).cmake_defines())
        self.assertNotIn("USE_RPC", defines)

    def test_tri_state_path_projection(self) -> None:
        settings = UserSettings.from_mapping(
            {"use_llvm": "path/to/x", "use_cuda": "./cuda/", "rocm_path": Path("/opt/rocm")}
        )
        self.assertEqual(
            settings.cmake_defines(),
            [("USE_CUDA", "./cuda/"), ("ROCM_PATH", str(Path("/opt/rocm"))), ("USE_LLVM", "path/to/x")],
        )

    def test_emission_follows_catalog_order(self) -> None:
        settings = UserSettings.from_mapping(
            {"summarize": True, "use_llvm": "ON", "use_cuda": "off", "use_openmp": "gnu"}
        )
        self.assertEqual(
            settings.cmake_defines(),
            [("USE_CUDA", "OFF"), ("USE_LLVM", "ON"), ("USE_OPENMP", "gnu"), ("SUMMARIZE", "ON")],
        )
        self.assertEqual(settings.cmake_defines(), settings.cmake_defines())

    def test_invalid_values_fail_at_construction(self) -> None:
        with self.assertRaises(InvalidOptionValue):
            UserSettings.from_mapping({"use_rpc": "sometimes"})
        with self.assertRaises(UnknownBuildOption):
            UserSettings.from_mapping({"use_nothing": "on"})

    def test_none_values_are_skipped(self) -> None:
        settings = UserSettings.from_mapping({"use_rpc": None, "use_sort": "on"})
        self.assertEqual(len(settings), 1)
        self.assertIn(BuildOption.USE_SORT, settings)

    def test_merged_prefers_the_overlay(self) -> None:
        base = UserSettings.from_mapping({"use_llvm": "ON", "use_rpc": True})
        overlay = UserSettings.from_mapping({"use_llvm": "/usr/bin/llvm-config"})
        merged = base.merged(overlay)
        self.assertEqual(merged.get(BuildOption.USE_LLVM), "/usr/bin/llvm-config")
        self.assertIs(merged.get(BuildOption.USE_RPC), True)
        self.assertEqual(base.get(BuildOption.USE_LLVM), Switch.ON)

    def test_settings_are_read_only(self) -> None:
        settings = UserSettings.from_mapping({"use_rpc": True})
        with self.assertRaises(TypeError):
            settings.values[BuildOption.USE_SORT] = True  # type: ignore[index]


if __name__ == "__main__":
    unittest.main()
