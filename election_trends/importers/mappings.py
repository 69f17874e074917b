"""
ElectionTrends - Poll Import Mappings

Normalization tables applied to NSPPolls-format polls so that poll
observations line up with official results in the charts.
"""

from typing import Dict, Iterable, List

from election_trends.models.observations import PoliticalFamily


# Party label as published in the poll file -> abbreviation used by results
PARTY_MAPPING: Dict[str, str] = {
    "Rassemblement national": "RN",
    "Parti socialiste": "PS",
    "France insoumise": "LFI",
    "Debout la France": "DLF",
    "EE-LV": "EELV",
    "Parti communiste": "PCF",
    "Reconquête": "REC",
    "LRM": "RENAISSANCE",
    "Les Républicains": "LR",
    "NPA": "NPA",
    "Lutte ouvrière": "LO",
    "Résistons": "RESISTONS",
    "Les Patriotes": "LP",
    "UPR": "UPR",
    "Génération.s": "GS",
    "PRG": "PRG",
    "Parti animaliste": "PA",
    "Place publique": "PP",
    "Nouvelle Donne": "ND",
    "Territoires de progrès": "TDP",
    "Agir": "AGIR",
    "En Commun": "EC",
    "Parti radical": "PRV",
    "Mouvement démocrate": "MODEM",
}

# Candidate (poll spelling) -> political family
NUANCE_MAPPING: Dict[str, PoliticalFamily] = {
    "Marine Le Pen": PoliticalFamily.FAR_RIGHT,
    "Anne Hidalgo": PoliticalFamily.LEFT,
    "Jean-Luc Mélenchon": PoliticalFamily.LEFT,
    "Nicolas Dupont-Aignan": PoliticalFamily.FAR_RIGHT,
    "Arnaud Montebourg": PoliticalFamily.LEFT,
    "Yannick Jadot": PoliticalFamily.LEFT,
    "Fabien Roussel": PoliticalFamily.LEFT,
    "Eric Zemmour": PoliticalFamily.FAR_RIGHT,
    "Emmanuel Macron": PoliticalFamily.CENTRE,
    "Valérie Pécresse": PoliticalFamily.RIGHT,
    "Philippe Poutou": PoliticalFamily.FAR_LEFT,
    "Nathalie Arthaud": PoliticalFamily.FAR_LEFT,
    "Jean Lassalle": PoliticalFamily.CENTRE,
    "Florian Philippot": PoliticalFamily.FAR_RIGHT,
    "François Asselineau": PoliticalFamily.OTHER,
    "Christiane Taubira": PoliticalFamily.LEFT,
}

# Candidate (poll spelling) -> spelling used in official results
CANDIDATE_NAME_NORMALIZATION: Dict[str, str] = {
    "Marine Le Pen": "Marine LE PEN",
    "Anne Hidalgo": "Anne HIDALGO",
    "Jean-Luc Mélenchon": "Jean-Luc MÉLENCHON",
    "Nicolas Dupont-Aignan": "Nicolas DUPONT-AIGNAN",
    "Arnaud Montebourg": "Arnaud MONTEBOURG",
    "Yannick Jadot": "Yannick JADOT",
    "Fabien Roussel": "Fabien ROUSSEL",
    "Eric Zemmour": "Éric ZEMMOUR",
    "Emmanuel Macron": "Emmanuel MACRON",
    "Valérie Pécresse": "Valérie PÉCRESSE",
    "Philippe Poutou": "Philippe POUTOU",
    "Nathalie Arthaud": "Nathalie ARTHAUD",
    "Jean Lassalle": "Jean LASSALLE",
    "Florian Philippot": "Florian PHILIPPOT",
    "François Asselineau": "François ASSELINEAU",
    "Christiane Taubira": "Christiane TAUBIRA",
}

DEFAULT_PARTY = "AUTRE"


def map_parties(parties: Iterable[str]) -> List[str]:
    """Map poll party labels to abbreviations; an empty result becomes ["AUTRE"]."""
    if isinstance(parties, str):
        parties = [parties]
    mapped = [PARTY_MAPPING.get(party, party) for party in parties or []]
    mapped = [party for party in mapped if party]
    return mapped or [DEFAULT_PARTY]


def normalize_candidate(name: str) -> str:
    return CANDIDATE_NAME_NORMALIZATION.get(name, name)


def family_for(name: str) -> PoliticalFamily:
    return NUANCE_MAPPING.get(name, PoliticalFamily.OTHER)
