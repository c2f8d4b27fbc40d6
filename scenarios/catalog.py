# scenarios/catalog.py
from __future__ import annotations

from callbench.types import BodyFormat, EndpointTarget
from scenarios.runner import ContractCheck, Scenario
from scenarios.shapes import Anybody, AnybodyCount, AnybodyFull, Junk1L

HOME = "api/anybody/home"
HOME2 = "api/anybody/home2"
JUNK = "api/anybody/junk"

# first element of every junk sequence, as the service builds it
JUNK_FIRST = {"junk3Laa": "Abcdef", "junk3Lba": 154538, "junk3Lca": 123.54534}
JUNK_SIZE = 100


def build_catalog(service_url: str) -> dict[str, Scenario]:
    """
    Built-in scenarios against the anybody service at ``service_url``.

    ``home`` and ``home_count`` (and the two POST variants) target different
    service builds; which one a deployment satisfies is a property of that
    build.
    """
    home = EndpointTarget(base_url=service_url, path=HOME)
    home2 = EndpointTarget(base_url=service_url, path=HOME2)

    junk_lengths = {}
    junk_expected = {}
    for outer, inner in (("junk2La", "junk3Laa"), ("junk2Lb", "junk3Lba"), ("junk2Lc", "junk3Lca")):
        junk_lengths[outer] = JUNK_SIZE
        junk_lengths[f"{outer}.0.{inner}"] = JUNK_SIZE
        junk_expected[f"{outer}.0.{inner}.0"] = JUNK_FIRST[inner]

    scenarios = [
        Scenario(
            name="home",
            target=home,
            shape=Anybody,
            expected={"home": True},
            contract=ContractCheck(allow_additional_properties=False, expect_valid=True),
            description="GET /home decodes to home=true and matches its schema exactly",
        ),
        Scenario(
            name="home_count",
            target=home,
            shape=AnybodyCount,
            expected={"home": 1},
            description="GET /home on builds that answer with a number",
        ),
        Scenario(
            name="home2_strict",
            target=home2,
            shape=Anybody,
            contract=ContractCheck(allow_additional_properties=False, expect_valid=False),
            description="extra field on /home2 breaks a closed schema",
        ),
        Scenario(
            name="home2_lenient",
            target=home2,
            shape=Anybody,
            expected={"home": True},
            contract=ContractCheck(allow_additional_properties=True, expect_valid=True),
            description="extra field on /home2 is fine when additional properties are allowed",
        ),
        Scenario(
            name="home_missing_field",
            target=home,
            shape=AnybodyFull,
            contract=ContractCheck(allow_additional_properties=True, expect_valid=False),
            description="/home lacks a field the shape declares; always invalid",
        ),
        Scenario(
            name="junk",
            target=EndpointTarget(base_url=service_url, path=JUNK),
            shape=Junk1L,
            expected=junk_expected,
            expected_lengths=junk_lengths,
            contract=ContractCheck(allow_additional_properties=False, expect_valid=True),
            description="nested document keeps its sizes and source order",
        ),
        Scenario(
            name="post_home",
            target=EndpointTarget(
                base_url=service_url, path=f"{HOME}/1", method="POST", body="", body_format=BodyFormat.JSON
            ),
            shape=Anybody,
            expected={"home": False},
            description="POST an empty JSON string to /home/1",
        ),
        Scenario(
            name="post_home_form",
            target=EndpointTarget(
                base_url=service_url,
                path=f"{HOME}/1",
                method="POST",
                body={"home": "41"},
                body_format=BodyFormat.FORM,
            ),
            shape=AnybodyCount,
            expected={"home": 42},
            description="POST a form body to /home/1; the service adds the id",
        ),
    ]
    return {s.name: s for s in scenarios}
