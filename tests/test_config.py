"""Tests for configuration parsing and descriptor construction."""

from __future__ import annotations

import pytest

from fnbundle.config import BuildSettings, FunctionConfig
from fnbundle.exceptions import ConfigurationError
from fnbundle.models.function import BundlingStrategy, FunctionDescriptor, ModuleFormat
from fnbundle.models.project import ProjectMetadata


class TestFunctionConfig:
    def test_empty(self):
        cfg = FunctionConfig.parse(None)
        assert cfg.node_version is None
        assert cfg.bundle is None
        assert cfg.node_sourcemap is False
        assert cfg.external_node_modules == []

    def test_full(self):
        cfg = FunctionConfig.parse(
            {
                "node_version": 20,
                "node_module_format": "esm",
                "node_bundler": "transpile-and-bundle",
                "bundle": True,
                "node_sourcemap": True,
                "external_node_modules": ["left-pad", "@aws-sdk/client-s3"],
            }
        )
        assert cfg.node_version == "20"
        assert cfg.node_module_format is ModuleFormat.ESM
        assert cfg.node_bundler is BundlingStrategy.TRANSPILE_AND_BUNDLE
        assert cfg.external_node_modules == ["left-pad", "@aws-sdk/client-s3"]

    def test_unknown_key(self):
        with pytest.raises(ConfigurationError, match="nodeVersion"):
            FunctionConfig.parse({"nodeVersion": "18"})

    def test_bad_format(self):
        with pytest.raises(ConfigurationError, match="node_module_format"):
            FunctionConfig.parse({"node_module_format": "amd"})

    def test_bad_package_name(self):
        with pytest.raises(ConfigurationError):
            FunctionConfig.parse({"external_node_modules": ["left pad; rm -rf"]})

    def test_frozen(self):
        cfg = FunctionConfig.parse({})
        with pytest.raises(Exception):
            cfg.bundle = True  # type: ignore[misc]


class TestFunctionDescriptor:
    def test_from_config(self):
        cfg = FunctionConfig.parse(
            {"node_version": ">=20", "bundle": False, "external_node_modules": ["zod"]}
        )
        desc = FunctionDescriptor.from_config("hello", "/srv/hello.ts", cfg)
        assert desc.node_version == ">=20"
        assert desc.bundle is False
        assert desc.external_modules == ("zod",)
        assert desc.is_typescript

    def test_relative_path_rejected(self):
        with pytest.raises(ConfigurationError, match="absolute"):
            FunctionDescriptor(name="hello", path="functions/hello.ts")

    def test_empty_name_rejected(self):
        with pytest.raises(ConfigurationError):
            FunctionDescriptor(name="", path="/srv/hello.ts")

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("/a/h.mjs", ModuleFormat.ESM),
            ("/a/h.MTS", ModuleFormat.ESM),
            ("/a/h.cjs", ModuleFormat.COMMONJS),
            ("/a/h.cts", ModuleFormat.COMMONJS),
            ("/a/h.js", None),
            ("/a/h.ts", None),
        ],
    )
    def test_extension_format(self, path, expected):
        assert FunctionDescriptor(name="h", path=path).extension_format is expected


class TestProjectMetadata:
    def test_module(self):
        meta = ProjectMetadata.from_package_json({"type": "module"})
        assert meta.module_format is ModuleFormat.ESM

    def test_commonjs(self):
        meta = ProjectMetadata.from_package_json({"type": "commonjs"})
        assert meta.module_format is ModuleFormat.COMMONJS

    def test_absent(self):
        tsconfig = {"compilerOptions": {}}
        meta = ProjectMetadata.from_package_json({"name": "app"}, tsconfig=tsconfig)
        assert meta.module_format is None
        assert meta.tsconfig == tsconfig

    def test_unknown_type(self):
        with pytest.raises(ConfigurationError, match="umd"):
            ProjectMetadata.from_package_json({"type": "umd"})


class TestBuildSettings:
    def test_defaults(self, monkeypatch):
        for var in (
            "FNBUNDLE_ESBUILD_BINARY",
            "FNBUNDLE_ESBUILD_TIMEOUT",
            "FNBUNDLE_CONCURRENCY",
            "FNBUNDLE_DEFAULT_NODE_VERSION",
        ):
            monkeypatch.delenv(var, raising=False)
        assert BuildSettings.from_env() == BuildSettings()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("FNBUNDLE_ESBUILD_BINARY", "/opt/esbuild")
        monkeypatch.setenv("FNBUNDLE_ESBUILD_TIMEOUT", "30")
        monkeypatch.setenv("FNBUNDLE_CONCURRENCY", "2")
        monkeypatch.setenv("FNBUNDLE_DEFAULT_NODE_VERSION", "20")
        settings = BuildSettings.from_env()
        assert settings.esbuild_binary == "/opt/esbuild"
        assert settings.esbuild_timeout == 30.0
        assert settings.concurrency == 2
        assert settings.default_node_version == 20

    @pytest.mark.parametrize(
        "var,value",
        [
            ("FNBUNDLE_CONCURRENCY", "many"),
            ("FNBUNDLE_CONCURRENCY", "0"),
            ("FNBUNDLE_ESBUILD_TIMEOUT", "-1"),
            ("FNBUNDLE_DEFAULT_NODE_VERSION", "eighteen"),
        ],
    )
    def test_invalid(self, monkeypatch, var, value):
        monkeypatch.setenv(var, value)
        with pytest.raises(ConfigurationError):
            BuildSettings.from_env()
