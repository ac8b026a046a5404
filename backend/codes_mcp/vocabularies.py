"""Per-vocabulary defaults for the Clinical Tables search endpoints.

Each of the eleven supported methods gets one immutable VocabularyConfig:
endpoint path, default search/display/code fields, how display rows are read,
and which extra columns are renamed on the way out.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

# display strategies understood by mapper.map_rows
JOIN = "join"
CODE_NAME = "code_name"
SECOND_OR_FIRST = "second_or_first"
PROVIDER = "provider"

_EMPTY: Mapping[str, str] = MappingProxyType({})

HCPCS_EXTRAS = MappingProxyType({
    "short_desc": "shortDescription",
    "long_desc": "longDescription",
    "add_dt": "addDate",
    "term_dt": "termDate",
    "act_eff_dt": "actualEffectiveDate",
})

HCPCS_FLAGS = MappingProxyType({
    "obsolete": "obsolete",
    "is_noc": "isNoc",
})

NPI_EXTRAS = MappingProxyType({
    "name.last": "lastName",
    "name.first": "firstName",
    "name.middle": "middleName",
    "name.credential": "credential",
    "name.prefix": "namePrefix",
    "name.suffix": "nameSuffix",
    "addr_practice.line1": "practiceAddressLine1",
    "addr_practice.line2": "practiceAddressLine2",
    "addr_practice.city": "practiceCity",
    "addr_practice.state": "practiceState",
    "addr_practice.zip": "practiceZip",
    "addr_practice.phone": "practicePhone",
    "addr_practice.fax": "practiceFax",
    "addr_practice.country": "practiceCountry",
    "addr_mailing.full": "mailingAddress",
    "addr_mailing.line1": "mailingAddressLine1",
    "addr_mailing.line2": "mailingAddressLine2",
    "addr_mailing.city": "mailingCity",
    "addr_mailing.state": "mailingState",
    "addr_mailing.zip": "mailingZip",
    "addr_mailing.phone": "mailingPhone",
    "addr_mailing.fax": "mailingFax",
    "addr_mailing.country": "mailingCountry",
    "name_other.full": "otherNameFull",
    "name_other.last": "otherNameLast",
    "name_other.first": "otherNameFirst",
    "name_other.middle": "otherNameMiddle",
    "name_other.credential": "otherNameCredential",
    "name_other.prefix": "otherNamePrefix",
    "name_other.suffix": "otherNameSuffix",
    "other_ids": "otherIds",
    "licenses": "licenses",
    "misc.auth_official.last": "authorizedOfficialLast",
    "misc.auth_official.first": "authorizedOfficialFirst",
    "misc.auth_official.middle": "authorizedOfficialMiddle",
    "misc.auth_official.credential": "authorizedOfficialCredential",
    "misc.auth_official.title": "authorizedOfficialTitle",
    "misc.auth_official.prefix": "authorizedOfficialPrefix",
    "misc.auth_official.suffix": "authorizedOfficialSuffix",
    "misc.auth_official.phone": "authorizedOfficialPhone",
    "misc.replacement_NPI": "replacementNPI",
    "misc.EIN": "ein",
    "misc.enumeration_date": "enumerationDate",
    "misc.last_update_date": "lastUpdateDate",
    "misc.parent_LBN": "parentLBN",
    "misc.parent_TIN": "parentTIN",
})

NPI_INDIVIDUAL_EXTRAS = MappingProxyType({"gender": "gender", **NPI_EXTRAS})

NPI_FLAGS = MappingProxyType({
    "misc.is_sole_proprietor": "isSoleProprietor",
    "misc.is_org_subpart": "isOrgSubpart",
})

NPI_FIELDS = "NPI,name.full,provider_type,addr_practice.full"
MEDGOPHER_SEARCH_FIELDS = (
    "consumer_name,primary_name,word_synonyms,synonyms,term_icd9_code,term_icd9_text"
)


@dataclass(frozen=True)
class VocabularyConfig:
    method: str
    path: str
    label: str
    search_fields: str
    display_fields: str
    code_field: str
    # hcpcs and npi always send a (defaulted) count; the rest only forward a caller's count
    always_count: bool = False
    default_type: Optional[str] = None
    display_strategy: str = JOIN
    renamed_extras: Mapping[str, str] = field(default_factory=lambda: _EMPTY)
    flag_extras: Mapping[str, str] = field(default_factory=lambda: _EMPTY)
    # npi-organizations forwards a whitespace-only additionalQuery as an empty q
    send_blank_query: bool = False


_CONFIGS = (
    VocabularyConfig(
        method="icd-10-cm",
        path="icd10cm",
        label="ICD-10-CM",
        search_fields="code,name",
        display_fields="code,name",
        code_field="code",
        display_strategy=CODE_NAME,
    ),
    VocabularyConfig(
        method="icd-11",
        path="icd11_codes",
        label="ICD-11",
        search_fields="code,title",
        display_fields="code,title,type",
        code_field="code",
        default_type="category",
    ),
    VocabularyConfig(
        method="hcpcs-LII",
        path="hcpcs",
        label="HCPCS Level II",
        search_fields="code,short_desc,long_desc",
        display_fields="code,display",
        code_field="code",
        always_count=True,
        display_strategy=SECOND_OR_FIRST,
        renamed_extras=HCPCS_EXTRAS,
        flag_extras=HCPCS_FLAGS,
    ),
    VocabularyConfig(
        method="npi-organizations",
        path="npi_org",
        label="NPI Organizations",
        search_fields=NPI_FIELDS,
        display_fields=NPI_FIELDS,
        code_field="NPI",
        always_count=True,
        display_strategy=PROVIDER,
        renamed_extras=NPI_EXTRAS,
        flag_extras=NPI_FLAGS,
        send_blank_query=True,
    ),
    VocabularyConfig(
        method="npi-individuals",
        path="npi_idv",
        label="NPI Individuals",
        search_fields=NPI_FIELDS,
        display_fields=NPI_FIELDS,
        code_field="NPI",
        always_count=True,
        display_strategy=PROVIDER,
        renamed_extras=NPI_INDIVIDUAL_EXTRAS,
        flag_extras=NPI_FLAGS,
    ),
    VocabularyConfig(
        method="hpo-vocabulary",
        path="hpo",
        label="HPO",
        search_fields="id,name,synonym.term",
        display_fields="id,name",
        code_field="id",
    ),
    VocabularyConfig(
        method="conditions",
        path="conditions",
        label="Medical Conditions",
        search_fields=MEDGOPHER_SEARCH_FIELDS,
        display_fields="primary_name,consumer_name",
        code_field="key_id",
    ),
    VocabularyConfig(
        method="rx-terms",
        path="rxterms",
        label="RxTerms",
        search_fields="DISPLAY_NAME,DISPLAY_NAME_SYNONYM",
        display_fields="DISPLAY_NAME",
        code_field="DISPLAY_NAME",
    ),
    VocabularyConfig(
        method="loinc-questions",
        path="loinc_items",
        label="LOINC Questions",
        search_fields=(
            "text,COMPONENT,CONSUMER_NAME,RELATEDNAMES2,METHOD_TYP,"
            "SHORTNAME,LONG_COMMON_NAME,LOINC_NUM"
        ),
        display_fields="text",
        code_field="LOINC_NUM",
    ),
    VocabularyConfig(
        method="ncbi-genes",
        path="ncbi_genes",
        label="NCBI Genes",
        search_fields=(
            "GeneID,Symbol,Synonyms,description,chromosome,map_location,"
            "type_of_gene,HGNC_ID,dbXrefs"
        ),
        display_fields="_code_system,_code,chromosome,Symbol,description,type_of_gene",
        code_field="GeneID",
    ),
    VocabularyConfig(
        method="major-surgeries-implants",
        path="procedures",
        label="Major Surgeries and Implants",
        search_fields=MEDGOPHER_SEARCH_FIELDS,
        display_fields="consumer_name",
        code_field="key_id",
    ),
)

VOCABULARIES: Mapping[str, VocabularyConfig] = MappingProxyType({c.method: c for c in _CONFIGS})

# loinc_items only understands these item types
LOINC_TYPES = ("question", "form", "form_and_section", "panel")
LOINC_TYPES_WITH_AVAILABLE = ("form", "form_and_section")


def get_vocabulary(method: str) -> VocabularyConfig:
    return VOCABULARIES[method]
