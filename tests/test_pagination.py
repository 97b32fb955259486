from board.config_loader import PaginationConfig
from board.pagination import ManualSizeObserver, ResponsivePaginationController, compute_rows_per_page

CHROME = 40 + 48


def height_for(rows):
    return CHROME + rows * 36


def test_compute_rows_per_page():
    assert compute_rows_per_page(height_for(12)) == 12
    assert compute_rows_per_page(height_for(12) + 35) == 12
    assert compute_rows_per_page(10) == 1


def test_small_changes_are_ignored():
    controller = ResponsivePaginationController()
    controller.page = 3

    assert controller.on_resize(height_for(11)) is False
    assert controller.on_resize(height_for(9)) is False
    assert (controller.rows_per_page, controller.page) == (10, 3)


def test_large_change_resets_page():
    controller = ResponsivePaginationController()
    controller.page = 3

    assert controller.on_resize(height_for(20)) is True
    assert (controller.rows_per_page, controller.page) == (20, 0)


def test_resize_is_idempotent():
    controller = ResponsivePaginationController()
    controller.on_resize(height_for(20))
    controller.page = 2

    assert controller.on_resize(height_for(20)) is False
    assert (controller.rows_per_page, controller.page) == (20, 2)


def test_observer_drives_controller_until_closed():
    observer = ManualSizeObserver()
    controller = ResponsivePaginationController(observer)

    observer.notify(height_for(30))
    assert controller.rows_per_page == 30

    controller.close()
    observer.notify(height_for(5))
    assert controller.rows_per_page == 30
    assert observer.subscriber_count == 0


def test_custom_row_height():
    controller = ResponsivePaginationController(config=PaginationConfig(row_height=20), initial_height=CHROME + 300)
    assert controller.rows_per_page == 15


def test_navigation_clamps():
    controller = ResponsivePaginationController()

    assert controller.next_page(total_pages=2) == 1
    assert controller.next_page(total_pages=2) == 1
    assert controller.prev_page() == 0
    assert controller.prev_page() == 0
    assert controller.last_page(total_pages=4) == 3
    assert controller.first_page() == 0
    assert controller.set_page(9, total_pages=0) == 0


def test_range_label():
    controller = ResponsivePaginationController()
    controller.page = 1
    assert controller.range_label(15) == (11, 15, 15)
    controller.page = 0
    assert controller.range_label(0) == (0, 0, 0)
