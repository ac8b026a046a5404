import asyncio
import logging

import pytest

from codes_mcp.config import Settings
from codes_mcp.dispatcher import TOOL_DEFINITION, TOOL_NAME, call_tool, search
from codes_mcp.errors import ToolNotFoundError, UpstreamFormatError, UpstreamHttpError, ValidationError
from codes_mcp.validation import METHODS


def _call(fake, arguments, name=TOOL_NAME, settings=None):
    async def go():
        async with fake.client() as client:
            return await call_tool(name, arguments, client=client, settings=settings)

    return asyncio.run(go())


class TestToolDefinition:
    def test_schema_lists_every_method(self):
        schema = TOOL_DEFINITION["inputSchema"]
        assert schema["properties"]["method"]["enum"] == list(METHODS)
        assert schema["required"] == ["method", "terms"]
        assert TOOL_DEFINITION["name"] == "nlm_ct_codes"

    def test_examples_cover_every_method(self):
        methods = {example["usage"]["method"] for example in TOOL_DEFINITION["examples"]}
        assert methods == set(METHODS)

    @pytest.mark.parametrize("example", TOOL_DEFINITION["examples"], ids=lambda e: e["description"])
    def test_examples_run(self, upstream, example):
        fake = upstream()
        result = _call(fake, example["usage"])
        assert result.method == example["usage"]["method"]
        assert f"terms={example['usage']['terms'].replace(' ', '+')}" in fake.last_url


class TestCallTool:
    def test_end_to_end_search(self, upstream):
        fake = upstream([20, ["I10", "I11.9"], None, [["I10", "Hypertension"], ["I11.9", "Heart disease"]]])
        result = _call(fake, {"method": "icd-10-cm", "terms": "hypertension", "offset": 5})
        assert result.method == "icd-10-cm"
        assert result.totalCount == 20
        assert [r.code for r in result.results] == ["I10", "I11.9"]
        assert result.pagination.hasMore is True
        assert result.pagination.offset == 5
        assert fake.last_url.startswith("https://clinicaltables.nlm.nih.gov/api/icd10cm/v3/search?")
        assert "offset=5" in fake.last_url

    def test_unknown_tool(self, upstream):
        fake = upstream()
        with pytest.raises(ToolNotFoundError):
            _call(fake, {"method": "icd-10-cm", "terms": "x"}, name="lookup")
        assert fake.requests == []

    def test_validation_happens_before_any_request(self, upstream):
        fake = upstream()
        with pytest.raises(ValidationError):
            _call(fake, {"method": "icd-10-cm"})
        with pytest.raises(ValidationError):
            _call(fake, {"method": "snomed", "terms": "x"})
        assert fake.requests == []

    def test_upstream_errors_propagate(self, upstream):
        with pytest.raises(UpstreamHttpError):
            _call(upstream(status_code=500, raw="boom"), {"method": "hpo-vocabulary", "terms": "x"})


class TestSettings:
    def test_base_url_from_settings(self, upstream):
        fake = upstream()
        settings = Settings(clinical_api_base_url="http://mirror.local")
        _call(fake, {"method": "rx-terms", "terms": "lipitor"}, settings=settings)
        assert fake.last_url.startswith("http://mirror.local/api/rxterms/v3/search?")

    def test_disabled_family_rejected(self, upstream):
        fake = upstream()
        settings = Settings(enable_npi_tools=False)
        with pytest.raises(ValidationError) as exc_info:
            _call(fake, {"method": "npi-individuals", "terms": "Smith"}, settings=settings)
        assert exc_info.value.message == 'The "npi-individuals" method is disabled on this server'
        assert fake.requests == []

    def test_untoggled_methods_always_on(self, upstream):
        settings = Settings(
            enable_icd_tools=False,
            enable_loinc_tools=False,
            enable_drug_tools=False,
            enable_genomic_tools=False,
            enable_npi_tools=False,
        )

        async def go():
            async with upstream().client() as client:
                return await search({"method": "conditions", "terms": "asthma"}, client=client, settings=settings)

        assert asyncio.run(go()).method == "conditions"


class TestDiagnostics:
    def test_short_payload_names_vocabulary(self, upstream):
        with pytest.raises(UpstreamFormatError) as exc_info:
            _call(upstream([2, ["A1"]]), {"method": "hpo-vocabulary", "terms": "x"})
        assert exc_info.value.message == "Invalid response format from HPO API"

    def test_non_json_payload_names_vocabulary(self, upstream):
        with pytest.raises(UpstreamFormatError) as exc_info:
            _call(upstream(raw="<html/>"), {"method": "icd-10-cm", "terms": "x"})
        assert exc_info.value.message == "Invalid response format from ICD-10-CM API"

    def test_rewrite_warnings_are_logged(self, upstream, caplog):
        fake = upstream()
        with caplog.at_level(logging.WARNING, logger="codes_mcp.dispatcher"):
            _call(fake, {"method": "npi-individuals", "terms": "x", "additionalQuery": "(a OR b) AND (c OR d)"})
        assert "npi-individuals: NLM Clinical Tables API Warning: Complex parentheses grouping detected" in caplog.text
        assert "q=%28a+OR+b%29+AND+%28c+OR+d%29" in fake.last_url

    def test_no_warning_for_plain_query(self, upstream, caplog):
        with caplog.at_level(logging.WARNING, logger="codes_mcp.dispatcher"):
            _call(upstream(), {"method": "npi-individuals", "terms": "x", "additionalQuery": "gender:F"})
        assert caplog.text == ""
