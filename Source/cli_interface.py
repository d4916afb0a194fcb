"""
CLI Interface module for ShareBill
Command-line interface for receipt analysis and bill splitting
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

from bill_splitter import format_breakdown
from config import ANALYSIS_TIMEOUT, EDIT_TIMEOUT, OWNER_ID
from data_models import Phase
from errors import ShareBillError
from image_editor import ImageEditService, PillowImageEditor, SUGGESTIONS
from receipt_analysis import OCRReceiptAnalyzer, ReceiptAnalysisService
from session import BillSession
from utils import (clean_text_for_display, format_currency, read_image_bytes,
                   try_parse_int, validate_image_path, validate_menu_choice)


class ShareBillCLI:
    """Command-line interface for ShareBill"""

    def __init__(self, session: Optional[BillSession] = None,
                 analyzer: Optional[ReceiptAnalysisService] = None,
                 editor: Optional[ImageEditService] = None,
                 analysis_timeout: float = ANALYSIS_TIMEOUT,
                 edit_timeout: float = EDIT_TIMEOUT):
        self.session = session or BillSession()
        self.analyzer = analyzer or OCRReceiptAnalyzer()
        self.editor = editor or PillowImageEditor()
        self.analysis_timeout = analysis_timeout
        self.edit_timeout = edit_timeout
        self.image_path: Optional[str] = None

    def display_banner(self):
        print("\n" + "="*60)
        print("🧾  SHAREBILL - Receipt Splitter")
        print("Split shared items, tax and tip fairly")
        print("="*60)

    def show_error(self):
        if self.session.last_error:
            print(f"\n❌ {self.session.last_error}")
            self.session.clear_error()

    def process_receipt(self, image_path: str) -> bool:
        """Analyze a receipt image and start splitting"""
        print(f"\n📸 Analyzing receipt: {image_path}")
        self.image_path = image_path
        try:
            ok = self.session.run_analysis(self.analyzer, read_image_bytes(image_path),
                                           timeout=self.analysis_timeout or None)
        except ShareBillError as e:
            print(f"⚠ {e}")
            return False

        if not ok:
            self.show_error()
            return False

        self.display_receipt()
        return True

    def display_receipt(self):
        """Display analyzed receipt with current assignments"""
        state = self.session.state
        if not state.items:
            print("\n⚠ No receipt analyzed yet")
            return

        names = {f.id: f.name for f in state.friends}
        currency = self.session.currency
        print("\n" + "="*50)
        print("📋 RECEIPT ITEMS")
        print("="*50)

        for i, item in enumerate(state.items, 1):
            assigned = [names[fid] for fid in self.session.assignments.assignees(item.id)]
            label = ', '.join(assigned) if assigned else 'Unassigned'
            print(f"{i:2}. {clean_text_for_display(item.name, 30):30} "
                  f"{format_currency(item.price, currency):>10} [{label}]")

        totals = state.totals
        print("-"*50)
        print(f"{'SUBTOTAL:':38} {format_currency(totals.subtotal, currency):>10}")
        print(f"{'TAX:':38} {format_currency(totals.tax, currency):>10}")
        if totals.tip > 0:
            print(f"{'TIP:':38} {format_currency(totals.tip, currency):>10}")
        print(f"{'TOTAL:':38} {format_currency(totals.total, currency):>10}")

    def display_friends(self):
        print("\nFriends involved:")
        for i, friend in enumerate(self.session.friends, 1):
            owner = " (owner)" if friend.id == OWNER_ID else ""
            print(f"  {i}. {friend.name}{owner}")

    def _pick_friend(self, prompt: str):
        friends = self.session.friends
        idx = try_parse_int(input(prompt))
        if idx is None or not 1 <= idx <= len(friends):
            print("Invalid selection")
            return None
        return friends[idx - 1]

    def manage_friends(self):
        """Add and remove friends"""
        print("\n" + "="*50)
        print("👥 FRIENDS")
        print("="*50)

        while True:
            self.display_friends()
            print("\n1. Add friend")
            print("2. Remove friend")
            print("3. Done")

            choice = validate_menu_choice(input("\nChoice: "), ['1', '2', '3']) or ''
            print("-"*50)

            try:
                if choice == '1':
                    friend = self.session.add_friend(input("Enter name: "))
                    print(f"✓ Added {friend.name}")
                elif choice == '2':
                    friend = self._pick_friend("Select friend number to remove: ")
                    if friend:
                        self.session.remove_friend(friend.id)
                        print(f"✓ Removed {friend.name}")
                elif choice == '3':
                    break
            except ShareBillError as e:
                print(f"⚠ {e}")

    def assign_items(self):
        """Walk through the items and choose who shares each one"""
        state = self.session.state
        if state.phase is not Phase.SPLITTING or not state.items:
            print("\n⚠ No receipt items to assign")
            return

        print("\n" + "="*50)
        print("🔍 ITEM ASSIGNMENT")
        print("="*50)

        names = {f.id: f.name for f in state.friends}
        for item in state.items:
            assigned = [names[fid] for fid in self.session.assignments.assignees(item.id)]
            print(f"\n{item.name} - {format_currency(item.price, self.session.currency)}")
            print(f"Shared by: {', '.join(assigned) if assigned else 'None'}")

            print("\n1. Everyone shares it")
            print("2. Toggle specific friends")
            print("3. Nobody (clear)")
            print("4. Skip")

            choice = validate_menu_choice(input("Choice: "), ['1', '2', '3', '4']) or '4'
            print("-"*50)

            if choice == '1':
                self.session.assign_to_everyone(item.id)
                print("✓ Shared by everyone")
            elif choice == '2':
                self.display_friends()
                selections = input("Enter friend numbers to toggle (comma-separated): ")
                friends = self.session.friends
                for part in selections.split(','):
                    idx = try_parse_int(part)
                    if idx is None or not 1 <= idx <= len(friends):
                        continue
                    now_assigned = self.session.toggle_assignment(item.id, friends[idx - 1].id)
                    print(f"{'✓ Added' if now_assigned else '✗ Removed'} {friends[idx - 1].name}")
            elif choice == '3':
                self.session.clear_item(item.id)
                print("✓ Cleared")

    def edit_image(self):
        """Apply an edit to the receipt photo and save the result next to it"""
        if self.session.phase is not Phase.SPLITTING:
            print("\n⚠ Analyze a receipt first")
            return

        print("\n🎨 Suggestions:")
        for suggestion in SUGGESTIONS:
            print(f"  • {suggestion}")
        instruction = input("Describe the edit: ")

        try:
            ok = self.session.run_edit(self.editor, instruction,
                                       timeout=self.edit_timeout or None)
        except ShareBillError as e:
            print(f"⚠ {e}")
            return

        if not ok:
            self.show_error()
            return

        base = Path(self.image_path or "receipt")
        output = base.with_name(f"{base.stem}_edited_{datetime.now().strftime('%Y%m%d_%H%M%S')}.png")
        output.write_bytes(self.session.state.edited_image)
        print(f"✅ Edited image saved to {output}")

    def show_breakdown(self):
        """Display what everyone owes"""
        if not self.session.state.items:
            print("\n⚠ Analyze a receipt first")
            return

        breakdown = self.session.breakdown()
        print("\n" + "="*50)
        print("💰 THE BREAKDOWN")
        print("="*50)
        for line in format_breakdown(breakdown, self.session.friends, self.session.currency):
            print(line)

    def export_results(self) -> Optional[str]:
        """Export receipt, friends, assignments and breakdown to JSON"""
        state = self.session.state
        if not state.items:
            print("\n⚠ No receipt to export")
            return None

        filename = f"sharebill_{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"
        totals = state.totals
        names = {f.id: f.name for f in state.friends}
        breakdown = self.session.breakdown().as_dict()
        for entry in breakdown['per_friend']:
            entry['name'] = names.get(entry['friend_id'], entry['friend_id'])

        data = {
            'export_info': {
                'timestamp': datetime.now().isoformat(),
                'version': '1.0',
                'currency': totals.currency,
            },
            'receipt': {
                'items': [{'id': i.id, 'name': i.name, 'price': float(i.price)} for i in state.items],
                'subtotal': float(totals.subtotal),
                'tax': float(totals.tax),
                'tip': float(totals.tip),
                'total': float(totals.total),
                'currency': totals.currency,
            },
            'friends': [{'id': f.id, 'name': f.name, 'avatar': f.avatar} for f in state.friends],
            'assignments': {
                item.id: self.session.assignments.assignees(item.id) for item in state.items
            },
            'breakdown': breakdown,
        }

        try:
            with open(filename, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except OSError as e:
            print(f"\nExport failed: {e}")
            return None

        print(f"\n✅ Results exported to {filename}")
        return filename

    def reset(self):
        self.session.reset()
        self.image_path = None
        print("\n✓ Session reset")

    def run(self):
        """Run the CLI application"""
        self.display_banner()

        while True:
            print("\n" + "="*50)
            print("MAIN MENU")
            print("="*50)
            print("1. Analyze receipt image")
            print("2. Manage friends")
            print("3. Assign items to friends")
            print("4. Edit receipt image")
            print("5. Show breakdown")
            print("6. Export results")
            print("7. Reset session")
            print("8. Exit")

            choice = input("\nChoice: ").strip()

            if choice == '1':
                image_path = input("Enter image path: ").strip()
                if validate_image_path(image_path):
                    self.process_receipt(image_path)
                else:
                    print("⚠ Invalid or unsupported image")
            elif choice == '2':
                self.manage_friends()
            elif choice == '3':
                self.assign_items()
            elif choice == '4':
                self.edit_image()
            elif choice == '5':
                self.show_breakdown()
            elif choice == '6':
                self.export_results()
            elif choice == '7':
                self.reset()
            elif choice == '8':
                print("\n👋 Thank you for using ShareBill!")
                break
