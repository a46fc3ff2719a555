"""
Category presets selectable on the command line.

Each preset maps a type argument to one or more CategorySpec entries. The
table is plain data: the pipeline looks a preset up once per request and
never branches on category names.

Lohn/Gehalt, Rente and Pension patterns overlap on purpose; a transaction
may show up in more than one report.
"""

import re
from enum import Enum
from typing import NamedTuple, Optional, Tuple

from .errors import ConfigurationError
from .records import SignFilter

# Labels that stand for "match everything"
MATCH_INCOMING = 'Umsatz_Eingang'
MATCH_OUTGOING = 'Umsatz_Ausgang'
MATCH_ALL = '.*'
SENTINEL_PATTERNS = {MATCH_INCOMING, MATCH_OUTGOING}

SEARCH_PREFIX = 'search'

_PROPERTY_MOOSACH = '(oberwiesenfeld|moosach)'
_PROPERTY_ALL = '(oberwiesenfeld|moosach|unterfoehring)'
_RENT_UNTERFOEHRING = 'pauschalierter Schadenersatz|Einheit A 5.24'
_PURCHASE_RATES = 'Kaufpreisraten|tilgung|abschlagszahlung|Moosach.*Rate|Unterfoehring.*Rate'
_SALARY = 'lohn.*gehalt'
_STATUTORY_PENSION = '97054030157S02311.*RV-RENTE.*Renten Service'
_COMPANY_PENSION = 'Rente.*Pens.*05115455.*Siemens'


class CategorySpec(NamedTuple):
    """One category rule.

    ``title`` is appended to the preset's file prefix; ``header`` is the
    optional document header.
    """
    title: str
    pattern: str
    header: Optional[str] = None

    @property
    def effective_pattern(self) -> str:
        """The pattern with the match-everything labels resolved."""
        if self.pattern in SENTINEL_PATTERNS:
            return MATCH_ALL
        return self.pattern

    def compile(self):
        return re.compile(self.effective_pattern, re.IGNORECASE)


class PresetKind(Enum):
    REPORT = 'report'
    RANKER = 'ranker'
    COMPOSITE = 'composite'


class Preset(NamedTuple):
    """A named group of categories selected by a type argument."""
    name: str
    selector: str
    prefix: str
    specs: Tuple[CategorySpec, ...] = ()
    kind: PresetKind = PresetKind.REPORT
    forced_sign: Optional[SignFilter] = None
    description: str = ''

    def selects(self, type_arg: str) -> bool:
        return re.search(self.selector, type_arg) is not None


PRESETS = (
    Preset('moosach', r'^moos', 'Moosach', (
        CategorySpec('_Grundsteuer', f'grundsteuer.*{_PROPERTY_MOOSACH}', 'Moosach/Oberwiesenfeld Grundsteuer'),
        CategorySpec('_Hausgeld', f'hausgeld.*{_PROPERTY_MOOSACH}', 'Moosach/Oberwiesenfeld Hausgeld'),
        CategorySpec('_Miete', f'mietaussch.*{_PROPERTY_MOOSACH}', 'Moosach/Oberwiesenfeld Miete'),
        CategorySpec('_Sonstiges',
                     'Grundbuch.*Moosach|Sondereigentum.*145.*346.*136|moosach.*rate|MyApart.*(Moosach|Oberwiesenfeld)',
                     'Moosach/Oberwiesenfeld Sonstiges'),
    ), description='Immobilie Moosach/Oberwiesenfeld (Ein- und Ausgang)'),
    Preset('unterfoehring', r'^unterf', 'Unterfoehring', (
        CategorySpec('_Grundsteuer', 'grundsteuer.*unterfoehring', 'Unterfoehring Grundsteuer'),
        CategorySpec('_Hausgeld', 'hausgeld.*unterfoehring', 'Unterfoehring Hausgeld'),
        CategorySpec('_Miete', f'mietaussch.*unterfoehring|{_RENT_UNTERFOEHRING}', 'Unterfoehring Miete'),
        CategorySpec('_Sonstiges',
                     '(UFH|Unterfoehring.*)Kaufpreisrate| 625222533706|Auflassung .*UFH|Terratax'
                     '|Sondereigentum .*265.*736|MyApart Unterfoehring',
                     'Unterfoehring Sonstiges'),
    ), description='Immobilie Unterfoehring (Ein- und Ausgang)'),
    Preset('immobilien', r'^immo', 'Immobilien', (
        CategorySpec('_Grundsteuer', f'grundsteuer.*{_PROPERTY_ALL}', 'Immobilien Grundsteuer'),
        CategorySpec('_Hausgeld', f'hausgeld.*{_PROPERTY_ALL}', 'Immobilien Hausgeld'),
        CategorySpec('_Miete', f'mietaussch.*{_PROPERTY_ALL}|{_RENT_UNTERFOEHRING}', 'Immobilien Mieteingang'),
        CategorySpec('_Kaufpreisraten', _PURCHASE_RATES, 'Immobilien Kaufpreisraten'),
    ), description='Immobilien (alle) Grundsteuer, Hausgeld, Miete, Kaufpreisraten'),
    Preset('miete', r'^miete', 'Mieteingang', (
        CategorySpec('', f'mietaussch.*{_PROPERTY_ALL}|{_RENT_UNTERFOEHRING}', 'Immobilien Mieteingang'),
    ), description='Immobilien (alle), Mieteingang gesamt'),
    Preset('kaufpreis', r'^kaufpreis', 'Kaufpreisraten', (
        CategorySpec('', _PURCHASE_RATES),
    ), description='Immobilie, Abschlagszahlungen/Kaufpreisraten'),
    Preset('versicherung', r'^versich', 'Versicherungen', (
        CategorySpec('', 'versicherung|generali|PRIVATSCHUTZ|Rechtsschutz|Landeskrankenhilfe|LKH'),
    ), description='diverse Versicherungsarten'),
    Preset('gehalt', r'^(lohn$|gehalt)', 'Gehalt', (
        CategorySpec('', _SALARY),
    ), description='Lohn & Gehalt'),
    Preset('rente', r'^rente', 'Rente', (
        CategorySpec('', _STATUTORY_PENSION),
    ), description='gesetzliche Rente'),
    Preset('pension', r'^pension', 'Pension', (
        CategorySpec('', _COMPANY_PENSION),
    ), description='Siemens Pension'),
    Preset('einkuenfte', r'^einku', 'Einkuenfte', (
        CategorySpec('', f'{_SALARY}|{_STATUTORY_PENSION}|{_COMPANY_PENSION}'),
    ), description='Einkuenfte aus nicht-selbststaendiger Arbeit und nicht Vermietung'),
    Preset('steuer', r'^steuer', 'Steuer', (
        CategorySpec('', '117/269/90567|grundsteuer|steuer|finanzamt|finanzkasse|ekst|1792699056719'),
    ), description='alles fuer das Finanzamt'),
    Preset('depot', r'^(depot$|wertpap)', 'Depot', (
        CategorySpec('', 'WERTPAPIER|Depot |auxmoney|Anlegerauszahlung|Depotgebuehren|Wertp.Abrechn.'),
    ), description='Wertpapiere & Depot'),
    Preset('erbe', r'^(erbe$|schenkung)', 'Erbe', (
        CategorySpec('', ' erbe |erbschaft|schenkung'),
    ), description='Erbschaften, Erbe, Schenkungen'),
    Preset('medizin', r'^(arzt|medizin)', 'Medizin', (
        CategorySpec('', 'dr. |labor|medizin|apotheke|untersuchung|arzt'),
    ), description='Arzt, Medizin, Apotheke, Untersuchung'),
    Preset('eingang', r'^eingang$', MATCH_INCOMING, (
        CategorySpec('', MATCH_INCOMING),
    ), forced_sign=SignFilter.POSITIVE, description="alle '+' Buchungen"),
    Preset('ausgang', r'^ausgang$', MATCH_OUTGOING, (
        CategorySpec('', MATCH_OUTGOING),
    ), forced_sign=SignFilter.NEGATIVE, description="alle '-' Buchungen"),
    Preset('total', r'^total$', 'Total', (
        CategorySpec('', MATCH_ALL),
    ), description='alle Buchungen, nur sinnvoll mit -s positiv|negativ'),
    Preset('search', r'^search:', 'Search',
           description='search:<regex>, case insensitive search for any string'),
    Preset('large', r'^large$', 'Large', kind=PresetKind.RANKER,
           description='sorted by large euro amounts (beyond the limit)'),
    Preset('complete', r'^complete$', '', kind=PresetKind.COMPOSITE,
           description='walk through most types in one command'),
)

COMPLETE_SEQUENCE = (
    'moosach', 'unterfoehring', 'kaufpreisrate', 'rente', 'pension', 'gehalt',
    'versicherung', 'steuer', 'medizin', 'depot', 'eingang', 'ausgang',
)


def search_spec(type_arg):
    """Build the category of a ``search:<regex>`` request.

    Raises:
        ConfigurationError: If the regex does not compile
    """
    pattern = type_arg.split(':', 1)[1]
    try:
        re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        raise ConfigurationError(f"invalid search pattern '{pattern}': {e}")
    return CategorySpec('', pattern)


def resolve_preset(type_arg):
    """Look up the preset selected by a type argument.

    Args:
        type_arg (str): Value of ``-t``, e.g. ``moosach``, ``lohn`` or
            ``search:landeskrankenhilfe``

    Returns:
        tuple: (Preset, tuple of CategorySpec)

    Raises:
        ConfigurationError: If no preset matches
    """
    if not type_arg:
        raise ConfigurationError("no type supplied")
    for preset in PRESETS:
        if not preset.selects(type_arg):
            continue
        if preset.name == SEARCH_PREFIX:
            return preset, (search_spec(type_arg),)
        return preset, preset.specs
    raise ConfigurationError(f"unknown TYPE '{type_arg}'")


def usage_lines():
    """One help line per preset, in table order."""
    return [f"{preset.name:<14} {preset.description}" for preset in PRESETS]
