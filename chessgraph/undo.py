from collections import deque

from django.conf import settings

from chessgraph.repertoire import RepertoireStore

MAX_STACK_SIZE = 50


class UndoRedo:
    """
    Whole-tree snapshot undo/redo around a RepertoireStore.

    Every mutation first saves a shallow copy of the node map as it was
    before the change. Nodes are immutable, so the copy shares node objects
    with the live tree and costs one dict per history entry. The oldest
    snapshot is dropped once max_depth (CHESSGRAPH_UNDO_DEPTH) is reached.
    """

    def __init__(self, store: RepertoireStore, max_depth=None):
        if max_depth is None:
            max_depth = getattr(settings, "CHESSGRAPH_UNDO_DEPTH", MAX_STACK_SIZE)
        self.store = store
        self.undo_stack: deque = deque(maxlen=max_depth)
        self.redo_stack: deque = deque(maxlen=max_depth)

    @property
    def can_undo(self):
        return bool(self.undo_stack)

    @property
    def can_redo(self):
        return bool(self.redo_stack)

    def clear(self):
        self.undo_stack.clear()
        self.redo_stack.clear()

    def _push_undo(self):
        self.undo_stack.append(dict(self.store.nodes))
        self.redo_stack.clear()

    def _record(self, operation, *args, **kwargs):
        """Snapshot, then run a store operation. A rejected call keeps history."""
        undo_stack, redo_stack = self.undo_stack.copy(), self.redo_stack.copy()
        self._push_undo()
        try:
            return operation(*args, **kwargs)
        except ValueError:
            self.undo_stack, self.redo_stack = undo_stack, redo_stack
            raise

    def add_child_node(self, parent_id, move, fen):
        return self._record(self.store.add_child_node, parent_id, move, fen)

    def delete_node(self, node_id):
        return self._record(self.store.delete_node, node_id)

    def clear_graph(self):
        return self._record(self.store.clear_graph)

    def update_node(self, node_id, **updates):
        return self._record(self.store.update_node, node_id, **updates)

    def add_transposition_edge(self, node_id, target_id, move):
        return self._record(self.store.add_transposition_edge, node_id, target_id, move)

    def remove_transposition_edge(self, node_id, target_id):
        return self._record(self.store.remove_transposition_edge, node_id, target_id)

    def replace_nodes(self, nodes):
        return self._record(self.store.replace_nodes, nodes)

    def import_pgn(self, pgn_text, **kwargs):
        return self._record(self.store.import_pgn, pgn_text, **kwargs)

    def undo(self):
        if not self.undo_stack:
            return

        snapshot = self.undo_stack.pop()
        self.redo_stack.append(dict(self.store.nodes))
        self.store.replace_nodes(snapshot)
        # whatever was selected may not exist in the restored tree
        self.store.select_node(self.store.root_node_id)

    def redo(self):
        if not self.redo_stack:
            return

        snapshot = self.redo_stack.pop()
        self.undo_stack.append(dict(self.store.nodes))
        self.store.replace_nodes(snapshot)
