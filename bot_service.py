"""
Chat bot conversation logic, independent of any chat network.

``ChatBot.handle_message`` takes one inbound text for one chat and returns
the replies to send back. Each chat id is its own player: its session comes
from the shared SessionDirectory and every successful combination is saved
right away.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from catalog_service import element_name, normalize_element_id
from constants import CATEGORY_BY_BUTTON, ELEMENT_CATEGORIES, HINTS
from session_service import Session, SessionDirectory

BTN_COMBINE = "🔮 Combine Elements"
BTN_DISCOVERED = "📚 Discovered Elements"
BTN_HINTS = "💡 Show Hints"
BTN_DOWNLOAD = "📥 Download Save"
BTN_SHOW_ALL = "📋 Show All Discovered"
BTN_BACK = "◀️ Back to Categories"
BTN_MAIN_MENU = "🏠 Main Menu"

MAIN_MENU_KEYBOARD: List[List[str]] = [
    [BTN_COMBINE, BTN_DISCOVERED],
    [BTN_HINTS, BTN_DOWNLOAD],
]

CATEGORY_KEYBOARD: List[List[str]] = [
    [ELEMENT_CATEGORIES[i]["button"], ELEMENT_CATEGORIES[i + 1]["button"]]
    for i in range(0, len(ELEMENT_CATEGORIES), 2)
] + [[BTN_SHOW_ALL]]

BACK_KEYBOARD: List[List[str]] = [[BTN_BACK, BTN_MAIN_MENU]]

WELCOME_TEXT = "Welcome to Open Craft! 🌟\nCombine elements to discover new ones!"
UNKNOWN_ELEMENT_TEXT = "You haven't discovered this element yet! Try another one."


@dataclass
class BotDocument:
    filename: str
    content: str


@dataclass
class BotReply:
    text: str
    keyboard: Optional[List[List[str]]] = None
    document: Optional[BotDocument] = None
    caption: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class DialogueState:
    waiting_for_first: bool = False
    waiting_for_second: bool = False
    first_element: str = ""


@dataclass
class ChatBot:
    directory: SessionDirectory
    dialogues: Dict[int, DialogueState] = field(default_factory=dict)

    def handle_message(self, chat_id: int, text: Optional[str]) -> List[BotReply]:
        text = (text or "").strip()
        with self.directory.locked(chat_id) as session:
            if text == "/start":
                return [BotReply(WELCOME_TEXT), self._main_menu()]
            if text == BTN_COMBINE:
                self.dialogues[chat_id] = DialogueState(waiting_for_first=True)
                return [self._elements_list(session)]
            if text in (BTN_DISCOVERED, BTN_BACK):
                return [self._category_menu()]
            if text == BTN_HINTS:
                return [self._hints()]
            if text == BTN_DOWNLOAD:
                return [self._save_file(session)]
            if text in CATEGORY_BY_BUTTON:
                return [self._category_elements(session, CATEGORY_BY_BUTTON[text])]
            if text == BTN_SHOW_ALL:
                return [self._all_discovered(session)]
            if text == BTN_MAIN_MENU:
                self.dialogues.pop(chat_id, None)
                return [self._main_menu()]

            state = self.dialogues.get(chat_id)
            if state is None:
                return []
            if state.waiting_for_first:
                return self._first_element(session, chat_id, text)
            if state.waiting_for_second:
                return self._second_element(session, chat_id, state.first_element, text)
            return []

    # ── Dialogue steps ─────────────────────────────────────────────────────

    def _first_element(self, session: Session, chat_id: int, text: str) -> List[BotReply]:
        element_id = normalize_element_id(text)
        if not session.is_discovered(element_id):
            return [BotReply(UNKNOWN_ELEMENT_TEXT)]
        self.dialogues[chat_id] = DialogueState(waiting_for_second=True, first_element=element_id)
        return [BotReply("Enter the second element:")]

    def _second_element(self, session: Session, chat_id: int, first: str, text: str) -> List[BotReply]:
        second = normalize_element_id(text)
        if not session.is_discovered(second):
            return [BotReply(UNKNOWN_ELEMENT_TEXT)]

        result, outcome = session.combine_and_commit(first, second)
        if result.ok:
            replies = [BotReply(f"✨ You created: {element_name(session.catalog, result.element_id)}!")]
            if outcome is not None and not outcome.ok:
                replies.append(BotReply("⚠️ Your progress could not be saved right now."))
        else:
            replies = [BotReply("❌ These elements cannot be combined.")]

        self.dialogues.pop(chat_id, None)
        replies.append(self._main_menu())
        return replies

    # ── Screens ────────────────────────────────────────────────────────────

    def _main_menu(self) -> BotReply:
        return BotReply("Choose an option:", keyboard=MAIN_MENU_KEYBOARD)

    def _category_menu(self) -> BotReply:
        return BotReply("Select a category to view discovered elements:", keyboard=CATEGORY_KEYBOARD)

    def _hints(self) -> BotReply:
        lines = ["Hints:"] + [f"{i}. {hint}" for i, hint in enumerate(HINTS, start=1)]
        return BotReply("\n".join(lines))

    def _elements_list(self, session: Session) -> BotReply:
        lines = ["Available Elements:", ""]
        lines += [f"- {element_name(session.catalog, e)}" for e in session.discovered_list()]
        lines += ["", "Enter the first element:"]
        return BotReply("\n".join(lines))

    def _category_elements(self, session: Session, category: str) -> BotReply:
        elements = session.discovered_in_category(category)
        lines = [f"{category} Elements:", ""]
        if elements:
            lines += [f"- {e.name}" for e in elements]
        else:
            lines.append("No elements discovered in this category yet!")
        return BotReply("\n".join(lines), keyboard=BACK_KEYBOARD)

    def _all_discovered(self, session: Session) -> BotReply:
        elements = session.discovered_elements()
        lines = [f"All Discovered Elements ({len(session.discovered_list())} total):", ""]
        lines += [f"- {e.name} ({e.category})" for e in elements]
        return BotReply("\n".join(lines), keyboard=BACK_KEYBOARD)

    def _save_file(self, session: Session) -> BotReply:
        if not session.has_save_file():
            return BotReply("No save file found")
        count = len(session.discovered_list())
        return BotReply(
            "Here is your save file.",
            document=BotDocument(filename=session.save_path.name, content=session.export_progress()),
            caption=f"Your save file containing {count} discovered elements",
        )
