from __future__ import annotations

import zlib
from typing import Dict, List

FALLBACK_NAMES: List[str] = [
    "Chihiro", "Haku", "Totoro", "Kiki", "Jiji", "Ponyo", "Sosuke", "Sophie", "Howl", "Calcifer",
    "Markl", "Nausicaa", "Sheeta", "Pazu", "San", "Ashitaka", "Yubaba", "Kamaji", "Lin", "No-Face",
    "Baron", "Muta", "Haru", "Seiji", "Shizuku", "Natori", "Nao", "Toto",
    "Arrietty", "Spiller", "Marnie", "Anna", "Umi", "Shun", "Pod", "Homily", "Sadako",
    "Yakul", "Moro", "Okami", "Nago", "Okkoto", "Gonza", "Toki", "Eboshi", "Jigo", "Kaya", "Hii-sama", "Kohroku",
    "Zeniba", "Boh", "Aogaeru", "Bandai-gaeru", "Chichiyaku", "Aniyaku",
    "Turnip", "Heen", "Lettie", "Honey", "Suliman",
    "Arren", "Therru", "Sparrowhawk", "Ged", "Tenar", "Tehanu", "Cob", "Hare",
    "Jiro", "Nahoko", "Caproni", "Castorp", "Honjo", "Kayo",
    "Fujimoto", "Granmamare", "Lisa", "Koichi", "Yoshie", "Noriko", "Kumiko", "Karen",
    "Tombo", "Osono", "Fukuo", "Ursula", "Ket", "Maki", "Madame", "Barsa",
    "Dola", "Charles", "Louis", "Henri", "Motro", "Muska", "Uncle Pom",
]

DEFAULT_PHRASES: List[str] = ["Bloop?", "Hello...", "Splosh."]

FALLBACK_PHRASES: Dict[str, List[str]] = {
    "curious and bubbly": [
        "Sparkles!", "Bloop bloop!", "Is that food?", "Yum yum!", "Friend?", "Swimming!",
        "Happy bubbles!", "So shiny!", "Did you see that?", "Round and round!", "Tee hee!",
        "Water is nice!", "Hello up there!", "Wiggle wiggle.", "Play with me!", "I found a bubble!",
    ],
    "playful, clicking, and mysterious": [
        "Click...", "Echoes...", "Hide and seek?", "Catch me!", "Spirits whisper...",
        "Tee hee!", "Invisible...", "You can't see me.", "Secrets...", "The water remembers.",
        "Pop!", "Do you know the way?", "Turning...", "Softly now.", "I am here... and there.",
    ],
    "slow, wise, and sleepy": [
        "The river knows...", "Zzz...", "Currents shift...", "Patience...", "Drifting...",
        "Ancient waters...", "Rest now.", "Time flows like water.", "Hrmmm...", "No rush.",
        "The moss grows slow.", "Quiet thoughts.", "Deep breaths.", "Sleepy tides.", "A long journey.",
    ],
    "majestic, ancient, and noble": [
        "Behold.", "The deep calls.", "Golden light.", "Respect the water.", "I watch over all.",
        "Grace.", "Silence.", "The sky reflects here.", "Do not disturb the flow.", "I have seen ages.",
        "Noble currents.", "Rise above.", "Tranquility.", "The spirits are watching.", "Pure waters.",
    ],
    "silent, hungry, and eerie": [
        "...", "Ah... ah...", "Gold...", "Hungry...", "Feed me...", "Lonely...",
        "Empty...", "Want...", "More...", "Darkness...", "Cold...", "Waiting...",
        "Give...", "Shadow...", "Lost...",
    ],
    "energetic, starlike, and fast": [
        "Zoom!", "Twinkle!", "Shooting star!", "Catch me!", "Light!", "Speed!",
        "Zap!", "Faster!", "Can't stop!", "Glowing!", "Look at me!", "Whoosh!",
        "Bright!", "Starlight!", "Burning bright!",
    ],
    "aggressive, hunting, and sharp": [
        "Prey...", "Shadows...", "Snap!", "Watching...", "Hunger...", "Darkness...",
        "Closer...", "Hunt.", "Sharp teeth.", "Silent stalker.", "Fear me.", "Blood in the water.",
        "My domain.", "Trespasser.", "Got you.",
    ],
    "massive, slow, and insatiable": [
        "Gulp.", "Ancient hunger.", "Floating...", "Everything is food.", "Slowly...",
        "Grow...", "Endless...", "Mouth open.", "Drift to me.", "Heavy...", "Big water.",
        "Swallow whole.", "Deep belly.", "River god.", "Mountain of flesh.",
    ],
    "colorful and radiant": [
        "Colors!", "Shining bright!", "I am the prism.", "Look at me glow!", "Radiant!",
        "Painting the water.", "Vibrant!", "Hue upon hue.", "Dazzling...", "Spectrum!",
        "Light dances.", "Chromatic.", "A living rainbow.", "Kaleidoscope!", "Iridescent dreams!",
    ],
}


def fallback_name(agent_id: int) -> str:
    """Stable name for an agent id, independent of the simulation RNG."""
    index = zlib.crc32(str(agent_id).encode("utf-8")) % len(FALLBACK_NAMES)
    return FALLBACK_NAMES[index]


def phrases_for(personality: str) -> List[str]:
    return FALLBACK_PHRASES.get(personality, DEFAULT_PHRASES)
