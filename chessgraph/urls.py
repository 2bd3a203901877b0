from django.contrib import admin
from django.urls import path

from chessgraph import views

admin.site.site_header = "♟️ Chess Graph Admin ♟️"
admin.site.site_title = "Chess Graph"
admin.site.index_title = "Admin"

urlpatterns = [
    path("admin/", admin.site.urls),
    path("repertoires/", views.repertoire_list, name="repertoire_list"),
    path(
        "repertoire/<uuid:repertoire_id>/import-pgn/",
        views.import_pgn,
        name="import_pgn",
    ),
    path(
        "repertoire/<uuid:repertoire_id>/export/",
        views.export_repertoire,
        name="export_repertoire",
    ),
    path("export/", views.export_all, name="export_all"),
]
