from dataclasses import FrozenInstanceError
from urllib.parse import parse_qsl, urlsplit

import pytest

from codes_mcp.errors import ValidationError
from codes_mcp.query_builder import build_search_params, build_search_url
from codes_mcp.vocabularies import VOCABULARIES, VocabularyConfig, get_vocabulary


def _params(method, **arguments):
    params, _ = build_search_params(get_vocabulary(method), arguments)
    return dict(params)


def test_icd10_default_url():
    url, _ = build_search_url(get_vocabulary("icd-10-cm"), {"terms": "hypertension"})
    assert url == (
        "https://clinicaltables.nlm.nih.gov/api/icd10cm/v3/search"
        "?terms=hypertension&maxList=7&offset=0&sf=code%2Cname&df=code%2Cname&cf=code"
    )


def test_npi_individuals_default_url():
    url, _ = build_search_url(get_vocabulary("npi-individuals"), {"terms": "Smith"})
    fields = "NPI%2Cname.full%2Cprovider_type%2Caddr_practice.full"
    assert url == (
        "https://clinicaltables.nlm.nih.gov/api/npi_idv/v3/search"
        f"?terms=Smith&maxList=7&count=7&offset=0&sf={fields}&df={fields}&cf=NPI"
    )


def test_special_characters_are_percent_encoded():
    url, _ = build_search_url(
        get_vocabulary("npi-individuals"),
        {"terms": "O'Connor & Associates", "additionalQuery": "addr_practice.state:CA AND provider_type:Internal*"},
    )
    assert "terms=O%27Connor+%26+Associates" in url
    assert "q=addr_practice.state%3ACA+AND+provider_type%3AInternal%2A" in url


def test_custom_base_url():
    url, _ = build_search_url(get_vocabulary("hpo-vocabulary"), {"terms": "ataxia"}, "http://localhost:9000/")
    assert urlsplit(url).netloc == "localhost:9000"
    assert urlsplit(url).path == "/api/hpo/v3/search"


@pytest.mark.parametrize("method", list(VOCABULARIES))
def test_every_vocabulary_sends_its_defaults(method):
    config = get_vocabulary(method)
    params = _params(method, terms="x")
    assert params["sf"] == config.search_fields
    assert params["df"] == config.display_fields
    assert params["cf"] == config.code_field
    assert params["maxList"] == "7"
    assert params["offset"] == "0"


def test_defaults_are_independent_per_vocabulary():
    triples = {(c.path, c.search_fields, c.display_fields, c.code_field) for c in VOCABULARIES.values()}
    assert len(triples) == 11
    assert len({c.path for c in VOCABULARIES.values()}) == 11


def test_overrides_replace_defaults():
    params = _params(
        "rx-terms",
        terms="lipitor",
        searchFields="DISPLAY_NAME",
        displayFields="DISPLAY_NAME,STRENGTHS_AND_FORMS",
        codeField="RXCUIS",
    )
    assert params["sf"] == "DISPLAY_NAME"
    assert params["df"] == "DISPLAY_NAME,STRENGTHS_AND_FORMS"
    assert params["cf"] == "RXCUIS"


def test_numbers_are_clamped():
    params = _params("hcpcs-LII", terms="glucose", maxList=9999, count=0, offset=-4)
    assert params["maxList"] == "500"
    assert params["count"] == "7"
    assert params["offset"] == "0"


def test_count_only_forwarded_when_supplied_for_plain_vocabularies():
    assert "count" not in _params("ncbi-genes", terms="BRCA1")
    assert _params("ncbi-genes", terms="BRCA1", count=900)["count"] == "500"
    assert _params("npi-organizations", terms="clinic")["count"] == "7"


def test_extra_fields_are_trimmed():
    assert _params("hcpcs-LII", terms="x", extraFields="  short_desc,obsolete ")["ef"] == "short_desc,obsolete"
    assert "ef" not in _params("hcpcs-LII", terms="x")
    assert _params("npi-individuals", terms="x", extraFields="   ")["ef"] == ""


def test_terms_validated():
    with pytest.raises(ValidationError):
        build_search_params(get_vocabulary("icd-11"), {})


def test_whitespace_terms_sent_empty():
    assert _params("icd-10-cm", terms="   ")["terms"] == ""


class TestAdditionalQuery:
    def test_rewritten_before_sending(self):
        params, warnings = build_search_params(
            get_vocabulary("hpo-vocabulary"),
            {"terms": "heart", "additionalQuery": "(diabetes OR hypertension) AND chronic"},
        )
        assert dict(params)["q"] == "(diabetes AND chronic) OR (hypertension AND chronic)"
        assert len(warnings) == 1

    def test_blank_query_omitted(self):
        assert "q" not in _params("npi-individuals", terms="Smith", additionalQuery="   ")
        assert "q" not in _params("icd-10-cm", terms="x", additionalQuery="")

    def test_blank_query_kept_empty_for_organizations(self):
        params = _params("npi-organizations", terms="clinic", additionalQuery="   ")
        assert params["q"] == ""
        assert "q" not in _params("npi-organizations", terms="clinic")

    def test_rewrite_applies_to_every_vocabulary(self):
        for method in VOCABULARIES:
            assert _params(method, terms="x", additionalQuery="(a OR b)")["q"] == "a OR b"


class TestTypeFlags:
    def test_icd11_defaults_to_category(self):
        assert _params("icd-11", terms="heart")["type"] == "category"
        assert _params("icd-11", terms="heart", type="stem")["type"] == "stem"

    def test_loinc_type_and_availability(self):
        params = _params("loinc-questions", terms="weight", type="form", available=True, excludeCopyrighted=False)
        assert params["type"] == "form"
        assert params["available"] == "true"
        assert params["excludeCopyrighted"] == "false"

    def test_loinc_available_ignored_for_questions(self):
        params = _params("loinc-questions", terms="weight", type="question", available=True)
        assert params["type"] == "question"
        assert "available" not in params

    def test_loinc_unknown_type_dropped(self):
        params = _params("loinc-questions", terms="weight", type="survey")
        assert "type" not in params

    def test_type_ignored_elsewhere(self):
        assert "type" not in _params("conditions", terms="asthma", type="form")

    def test_param_order(self):
        url, _ = build_search_url(
            get_vocabulary("loinc-questions"),
            {"terms": "bp", "count": 3, "extraFields": "units", "additionalQuery": "datatype:REAL",
             "type": "form_and_section", "available": False, "excludeCopyrighted": True},
        )
        keys = [k for k, _ in parse_qsl(urlsplit(url).query, keep_blank_values=True)]
        assert keys == [
            "terms", "maxList", "count", "offset", "sf", "df", "cf", "ef", "q",
            "type", "available", "excludeCopyrighted",
        ]

    def test_url_carries_rewrite_warnings(self):
        url, warnings = build_search_url(
            get_vocabulary("hpo-vocabulary"), {"terms": "x", "additionalQuery": "(a OR b) AND c"}
        )
        assert "q=%28a+AND+c%29+OR+%28b+AND+c%29" in url
        assert len(warnings) == 1
        assert "Parentheses grouping detected and transformed" in warnings[0]

    def test_plain_query_has_no_warnings(self):
        _, warnings = build_search_url(get_vocabulary("hpo-vocabulary"), {"terms": "x", "additionalQuery": "id:HP*"})
        assert warnings == ()

    def test_empty_q_survives_encoding(self):
        url, _ = build_search_url(get_vocabulary("npi-organizations"), {"terms": "clinic", "additionalQuery": " "})
        assert url.endswith("&cf=NPI&q=")


def test_config_defaults_without_extras_tables():
    config = VocabularyConfig(
        method="demo",
        path="demo",
        label="Demo",
        search_fields="a",
        display_fields="a",
        code_field="a",
    )
    assert dict(config.renamed_extras) == {}
    assert dict(config.flag_extras) == {}
    assert config.display_strategy == "join"
    with pytest.raises(FrozenInstanceError):
        config.path = "other"
