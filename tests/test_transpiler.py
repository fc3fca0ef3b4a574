"""Tests for TranspilerService over an in-memory backend."""

from __future__ import annotations

import json

import pytest

from fnbundle.backends.base import BackendFailure
from fnbundle.backends.esbuild_backend import EsbuildBackend
from fnbundle.exceptions import ConfigurationError, TranspilationError, UnsupportedTargetError
from fnbundle.models.function import ModuleFormat
from fnbundle.models.transpile import TranspileRequest
from fnbundle.testing import FakeBackend
from fnbundle.transpiler import TranspilerService


def _request(path: str, **kwargs) -> TranspileRequest:
    defaults = {"path": path, "format": ModuleFormat.COMMONJS, "target": "node18"}
    defaults.update(kwargs)
    return TranspileRequest.build(**defaults)


class TestTranspileRequest:
    def test_build_serializes_tsconfig(self):
        req = _request("/a/b.ts", tsconfig={"compilerOptions": {"strict": True}})
        assert json.loads(req.tsconfig_raw) == {"compilerOptions": {"strict": True}}

    def test_build_normalizes_externals(self):
        req = _request("/a/b.ts", external_modules=["zod", "left-pad", "zod"])
        assert req.external_modules == ("left-pad", "zod")

    def test_frozen(self):
        req = _request("/a/b.ts")
        with pytest.raises(AttributeError):
            req.bundle = True  # type: ignore[misc]


class TestTranspileOnly:
    @pytest.mark.asyncio
    async def test_forces_bundle_off(self, write_source):
        backend = FakeBackend()
        service = TranspilerService(backend)
        path = write_source("hello.ts", "export const x: number = 1\n")
        request = _request(path, bundle=True, external_modules=["left-pad"])

        result = await service.transpile_only(request)

        sent = backend.requests[0]
        assert sent.bundle is False
        assert sent.external_modules == ()
        assert "bundle=False" in result.code
        # caller's request is untouched
        assert request.bundle is True

    @pytest.mark.asyncio
    async def test_sourcemap_only_when_requested(self, write_source):
        service = TranspilerService(FakeBackend())
        path = write_source("hello.ts")
        assert (await service.transpile_only(_request(path))).source_map is None
        assert (await service.transpile_only(_request(path, sourcemap=True))).source_map


class TestTranspileAndBundle:
    @pytest.mark.asyncio
    async def test_forces_bundle_on_and_keeps_externals(self, write_source):
        backend = FakeBackend()
        service = TranspilerService(backend)
        path = write_source("hello.mjs", "import pad from 'left-pad'\n")

        await service.transpile_and_bundle(
            _request(path, format=ModuleFormat.ESM, external_modules=["left-pad"])
        )

        sent = backend.requests[0]
        assert sent.bundle is True
        assert sent.external_modules == ("left-pad",)
        cmd = EsbuildBackend().build_command(sent)
        assert "--bundle" in cmd
        assert "--packages=external" in cmd
        assert "--external:left-pad" in cmd


class TestFailures:
    @pytest.mark.asyncio
    async def test_backend_failure_becomes_transpilation_error(self, write_source):
        diagnostic = 'hello.ts:1:10: ERROR: Unterminated string literal'
        backend = FakeBackend(failures={"hello.ts": BackendFailure(diagnostic, returncode=1)})
        service = TranspilerService(backend)
        path = write_source("hello.ts", "const s = 'oops\n")

        with pytest.raises(TranspilationError) as info:
            await service.transpile_only(_request(path))

        assert info.value.diagnostic == diagnostic
        assert isinstance(info.value.__cause__, BackendFailure)
        assert not isinstance(info.value, UnsupportedTargetError)

    @pytest.mark.asyncio
    async def test_backend_unsupported_target(self, write_source):
        failure = BackendFailure("Invalid target", returncode=1, unsupported_target=True)
        service = TranspilerService(FakeBackend(failures={"hello.ts": failure}))
        path = write_source("hello.ts")

        with pytest.raises(UnsupportedTargetError) as info:
            await service.transpile_only(_request(path))

        assert isinstance(info.value, TranspilationError)
        assert isinstance(info.value, ConfigurationError)
        assert info.value.category == "configuration"
        assert info.value.__cause__ is failure

    @pytest.mark.asyncio
    async def test_unsupported_target_rejected_before_backend(self, write_source):
        backend = FakeBackend(targets={"node18"})
        service = TranspilerService(backend)
        path = write_source("hello.ts")

        with pytest.raises(UnsupportedTargetError):
            await service.transpile_only(_request(path, target="node8"))
        assert backend.requests == []
