from django.contrib import admin
from djangoql.admin import DjangoQLSearchMixin

from .models import Node, Repertoire


class NodeInline(admin.TabularInline):
    model = Node
    extra = 0
    fields = ("move", "fen", "comment", "color", "parent_id", "sequence")
    readonly_fields = ("parent_id", "sequence")
    show_change_link = True


@admin.register(Repertoire)
class RepertoireAdmin(DjangoQLSearchMixin, admin.ModelAdmin):
    list_display = ("name", "side", "node_count", "updated_at")
    list_filter = ("side",)
    readonly_fields = ("id", "root_node_id", "created_at")
    inlines = [NodeInline]

    @admin.display(description="Nodes")
    def node_count(self, obj):
        return obj.nodes.count()


@admin.register(Node)
class NodeAdmin(DjangoQLSearchMixin, admin.ModelAdmin):
    list_display = ("move", "fen", "repertoire", "color", "sequence")
    list_filter = ("repertoire",)
    search_fields = ("fen", "move", "comment")
    readonly_fields = ("id", "parent_id", "child_ids", "transposition_edges")
