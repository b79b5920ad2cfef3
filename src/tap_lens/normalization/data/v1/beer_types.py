"""Default beer-style vocabulary used when the backend list is unavailable."""

BEER_TYPES: list[str] = [
    "IPA",
    "Hazy IPA",
    "Session IPA",
    "Double IPA",
    "Pale Ale",
    "Ale",
    "Golden Ale",
    "Amber Ale",
    "Red Ale",
    "Brown Ale",
    "Stout",
    "Irish Stout",
    "Porter",
    "Lager",
    "Lite",
    "Pilsner",
    "Kolsch",
    "Wheat Beer",
    "Hefeweizen",
    "Witbier",
    "Belgian",
    "Saison",
    "Tripel",
    "Sour",
    "Gose",
    "Bock",
    "Barleywine",
    "Fruit Beer",
    "Cider",
    "Seltzer",
]
