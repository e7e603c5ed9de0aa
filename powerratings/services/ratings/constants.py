"""
Static reference data for the ratings engine: bookmaker keys, neutral-site
keywords and the mascot list used when normalizing team names.
"""

# The Odds API bookmaker keys
SHARP_BOOKMAKER = "pinnacle"

US_RETAIL_BOOKMAKERS = (
    "draftkings",
    "fanduel",
    "betmgm",
    "betrivers",
    "williamhill_us",  # Caesars
)

# Historical odds regions per closing source. Pinnacle is listed under "eu";
# "us" is included as well so the retail fallback has books to average.
REGIONS_FOR_SOURCE = {
    "pinnacle": "us,eu",
    "us_average": "us",
}

# Generic terms that indicate a neutral floor when they appear in a venue
# or event name
NEUTRAL_SITE_KEYWORDS = (
    "neutral",
    "tournament",
    "championship",
    "ncaa",
    "nit",
    "march madness",
    "final four",
    "sweet sixteen",
    "elite eight",
)

# Named early-season events and postseason rounds that are always neutral
NEUTRAL_SITE_EVENTS = (
    "maui invitational",
    "battle 4 atlantis",
    "phil knight invitational",
    "phil knight legacy",
    "empire classic",
    "jimmy v classic",
    "champions classic",
    "gavitt tipoff games",
    "big ten acc challenge",
    "acc tournament",
    "big ten tournament",
    "big 12 tournament",
    "sec tournament",
    "pac-12 tournament",
    "big east tournament",
    "ncaa tournament",
    "first four",
    "first round",
    "second round",
    "sweet 16",
    "elite 8",
    "national championship",
)

# Mascots stripped from the end of provider team names ("Duke Blue Devils" -> "duke")
MASCOTS = (
    "wildcats", "bulldogs", "tigers", "bears", "eagles", "cardinals", "hokies",
    "hurricanes", "panthers", "yellow jackets", "fighting irish", "demon deacons",
    "seminoles", "blue devils", "cavaliers", "spartans", "buckeyes", "nittany lions",
    "wolverines", "hoosiers", "boilermakers", "fighting illini", "hawkeyes", "badgers",
    "golden gophers", "cornhuskers", "scarlet knights", "terrapins", "bruins", "trojans",
    "ducks", "huskies", "jayhawks", "cyclones", "red raiders", "mountaineers",
    "horned frogs", "longhorns", "sooners", "cougars", "knights", "bearcats",
    "sun devils", "buffaloes", "utes", "volunteers", "crimson tide", "razorbacks",
    "gators", "rebels", "gamecocks", "aggies", "commodores", "musketeers", "friars",
    "pirates", "red storm", "golden eagles", "blue demons", "hoyas", "gaels", "rams",
    "flyers", "wolf pack", "broncos", "lobos", "aztecs", "shockers", "tar heels",
    "orange", "wolfpack", "thundering herd", "leathernecks", "jaguars", "monarchs",
    "owls", "49ers", "chanticleers", "red wolves", "highlanders", "terriers", "bison",
    "explorers", "billikens", "bonnies", "colonials", "dukes", "spiders", "royals",
    "ambassadors", "patriots", "lumberjacks", "screaming eagles", "hornets", "hawks",
    "fighting hawks", "jackrabbits", "coyotes", "flames", "racers", "mean green",
    "roadrunners", "anteaters", "matadors", "gauchos", "tritons", "miners", "mocs",
    "paladins", "catamounts", "keydets", "retrievers", "jaspers", "purple eagles",
    "peacocks", "dolphins", "ospreys", "hatters", "buccaneers", "governors", "skyhawks",
    "redhawks", "penguins", "zips", "rockets", "chippewas", "bulls", "redbirds",
    "sycamores", "salukis", "mastodons", "roos", "ichabods", "gorillas", "beacons",
    "yellowjackets", "seawolves", "great danes", "phoenix", "griffins",
    "ramblers", "crusaders", "dons", "toreros", "waves", "pilots", "lakers",
)
