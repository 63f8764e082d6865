"""
Main NiceGUI application for FlowPad.

Hosts one EditorShell per page: a name field with an "Add Node" button, the
graph rendered with ui.echart, and a card per node carrying its label, its
annotation text area and a right-click menu (Edit / Delete). All gestures
are forwarded to the shell or its interaction controller; this file keeps
no graph state of its own.
"""

import logging
import sys

from dotenv import load_dotenv
from nicegui import ui

load_dotenv()

from flowpad.config import get_editor_settings
from flowpad.render import (
    REQUESTED_EVENT_KEYS,
    TEXT_PLACEHOLDER,
    build_echart_options,
)
from flowpad.shell import EditorShell

logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
logger = logging.getLogger(__name__)


def structure_key(shell: EditorShell) -> tuple:
    """Everything the node cards depend on except typed text (annotation, draft label)."""
    snapshot = shell.snapshot
    states = shell.interactions.states
    return (
        tuple((n.id, n.label) for n in snapshot.nodes),
        tuple(sorted((nid, st.mode.value, st.menu_open, st.menu_anchor) for nid, st in states.items())),
        tuple(e.id for e in snapshot.edges),
    )


@ui.page('/')
def main_page():
    settings = get_editor_settings()
    shell = EditorShell(settings=settings)
    controller = shell.interactions
    state = {'structure': None, 'connect_source': None, 'connect_target': None}

    # 1. Toolbar
    with ui.row().classes('w-full items-center gap-2 p-2 border-b'):
        name_input = ui.input(
            placeholder='Enter node name',
            on_change=lambda e: shell.set_pending_name(e.value or ''),
        ).props('dense outlined')

        def add_node():
            if shell.submit_add_node():
                name_input.value = shell.pending_name

        name_input.on('keydown.enter', add_node)
        ui.button('Add Node', on_click=add_node).props('color=primary')

        ui.separator().props('vertical')

        source_select = ui.select([], label='From', on_change=lambda e: state.update(connect_source=e.value)).props('dense outlined').classes('w-40')
        target_select = ui.select([], label='To', on_change=lambda e: state.update(connect_target=e.value)).props('dense outlined').classes('w-40')

        def connect():
            if state['connect_source'] and state['connect_target']:
                shell.on_connect({'source': state['connect_source'], 'target': state['connect_target']})

        ui.button('Connect', icon='arrow_forward', on_click=connect).props('flat color=primary')

        edge_select = ui.select([], label='Edge').props('dense outlined clearable').classes('w-56')

        def remove_edge():
            if edge_select.value:
                shell.on_edges_change([{'type': 'remove', 'id': edge_select.value}])
                edge_select.value = None

        ui.button(icon='link_off', on_click=remove_edge).props('flat dense round color=negative').tooltip('Remove edge')

    # 2. Graph + node cards
    with ui.row().classes('w-full no-wrap gap-4 p-2'):
        chart = ui.echart(build_echart_options(shell.snapshot)).classes('grow').style('height: 80vh')
        cards_column = ui.column().classes('w-96 gap-2 overflow-y-auto').style('max-height: 80vh')

    def handle_chart_contextmenu(event):
        shell.on_chart_contextmenu(event.args if hasattr(event, 'args') else event)

    chart.on('chart:contextmenu', handle_chart_contextmenu, REQUESTED_EVENT_KEYS)

    @ui.refreshable
    def render_cards():
        snapshot = shell.snapshot
        open_menus = []
        for node in snapshot.nodes:
            node_state = controller.state(node.id)
            if node_state.is_menu_open:
                open_menus.append((node.id, node_state))

            card = ui.card().classes('w-full gap-1').style('padding: 10px; border: 1px solid #ddd; border-radius: 5px; background: white')
            card.on(
                'contextmenu.prevent',
                lambda e, nid=node.id: controller.open_menu(nid, e.args.get('clientX', 0), e.args.get('clientY', 0)),
                ['clientX', 'clientY'],
            )
            with card:
                if node_state.is_editing_label:
                    label_input = ui.input(
                        value=node_state.draft_label,
                        on_change=lambda e, nid=node.id: controller.change_draft(nid, e.value or ''),
                    ).props('dense autofocus').classes('w-full')
                    label_input.on('blur', lambda _, nid=node.id: controller.commit_label(nid))
                    label_input.on('keydown.enter', lambda _, nid=node.id: controller.commit_label(nid))
                    if node_state.focus_requested:
                        ui.timer(0.1, lambda nid=node.id: controller.acknowledge_focus(nid), once=True)
                else:
                    ui.label(node.label).classes('font-medium')
                ui.textarea(
                    value=node.text,
                    placeholder=TEXT_PLACEHOLDER,
                    on_change=lambda e, nid=node.id: controller.change_text(nid, e.value or ''),
                ).props('dense outlined autogrow').classes('w-full')

        if open_menus:
            # Full-screen backdrop catches clicks outside the menu
            ui.element('div').classes('fixed inset-0').style('z-index: 999').on('mousedown', lambda: controller.click_outside())
            for node_id, node_state in open_menus:
                x, y = node_state.menu_anchor or (0, 0)
                with ui.card().classes('fixed gap-1').style(f'left: {x}px; top: {y}px; z-index: 1000; padding: 5px'):
                    ui.button('Edit', on_click=lambda nid=node_id: controller.choose_edit(nid)).props('flat dense')
                    ui.button('Delete', on_click=lambda nid=node_id: controller.choose_delete(nid)).props('flat dense color=negative')

    with cards_column:
        render_cards()

    def refresh_ui(*_):
        snapshot = shell.snapshot
        chart.options.clear()
        chart.options.update(build_echart_options(snapshot, controller.states))
        chart.update()

        # Rebuilding on every keystroke would steal focus from the text areas
        key = structure_key(shell)
        if key != state['structure']:
            state['structure'] = key
            node_options = {n.id: n.label for n in snapshot.nodes}
            source_select.set_options(node_options)
            target_select.set_options(node_options)
            edge_select.set_options({
                e.id: f"{node_options.get(e.source, e.source)} → {node_options.get(e.target, e.target)}"
                for e in snapshot.edges
            })
            render_cards.refresh()

    shell.subscribe(refresh_ui)
    controller.set_on_state_change(lambda node_id, node_state: refresh_ui())
    refresh_ui()


if __name__ in {"__main__", "__mp_main__"}:
    ui.run(
        title='FlowPad',
        port=get_editor_settings().port,
        reload=not getattr(sys, 'frozen', False),
    )
