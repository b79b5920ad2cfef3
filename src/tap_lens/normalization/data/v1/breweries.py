"""Known beer-name to brewery pairs.

Lookup matches keys as substrings in list order, so any key that contains a
shorter key (``keystone`` contains ``stone``) must come first.
"""

BREWERIES: list[tuple[str, str]] = [
    # Specific beers
    ("bud light", "Anheuser-Busch"),
    ("michelob ultra", "Anheuser-Busch"),
    ("stella artois", "AB InBev"),
    ("keystone light", "Molson Coors"),
    ("keystone", "Molson Coors"),
    ("blue moon", "Molson Coors"),
    ("miller lite", "Molson Coors"),
    ("miller high life", "Molson Coors"),
    ("pbr", "Pabst Brewing"),
    ("pabst blue ribbon", "Pabst Brewing"),
    ("two hearted", "Bell's Brewery"),
    ("oberon", "Bell's Brewery"),
    ("60 minute", "Dogfish Head"),
    ("90 minute", "Dogfish Head"),
    ("philly pale", "Yards Brewing"),
    ("brawler", "Yards Brewing"),
    ("golden monkey", "Victory Brewing"),
    ("prima pils", "Victory Brewing"),
    ("hop devil", "Victory Brewing"),
    ("all day ipa", "Founders Brewing"),
    ("kbs", "Founders Brewing"),
    ("voodoo ranger", "New Belgium"),
    ("fat tire", "New Belgium"),
    ("heady topper", "The Alchemist"),
    ("love city", "Love City Brewing"),
    ("sam adams", "Boston Beer Company"),
    ("samuel adams", "Boston Beer Company"),
    ("sierra nevada", "Sierra Nevada"),
    ("dogfish head", "Dogfish Head"),
    ("modelo especial", "Grupo Modelo"),
    ("pacifico", "Grupo Modelo"),
    # Brewery names and flagship brands
    ("allagash", "Allagash Brewing"),
    ("bell's", "Bell's Brewery"),
    ("bells", "Bell's Brewery"),
    ("budweiser", "Anheuser-Busch"),
    ("michelob", "Anheuser-Busch"),
    ("coors", "Molson Coors"),
    ("miller", "Molson Coors"),
    ("guinness", "Guinness"),
    ("yuengling", "D.G. Yuengling & Son"),
    ("yards", "Yards Brewing"),
    ("victory", "Victory Brewing"),
    ("lancaster", "Lancaster Brewing"),
    ("brooklyn", "Brooklyn Brewery"),
    ("lagunitas", "Lagunitas"),
    ("founders", "Founders Brewing"),
    ("corona", "Grupo Modelo"),
    ("modelo", "Grupo Modelo"),
    ("heineken", "Heineken"),
    ("stone", "Stone Brewing"),
    # Menus sometimes print "Philadelphia Pale Ale" for the Yards flagship
    ("philadelphia", "Yards Brewing"),
]
