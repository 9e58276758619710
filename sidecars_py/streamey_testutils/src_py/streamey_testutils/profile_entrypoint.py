from streamey import component
from streamey import html
from streamey import render_sync

_ITERATION_COUNT = 100000

NAV_ITEM_VARS = {
    'link': '/home',
    'classlist': 'navbar',
    'name': 'Home'}
PAGE_WITH_NAV_VARS = {
    'page_title': 'My benchmark page',
    'page_content': 'lorem ipsum'}
PAGE_WITH_NAV_NESTED_INSTANCE_COUNT = 5


def nav_item(props):
    return html(
        ('<li><a href="', '" class="', '">', '</a></li>'),
        props['link'], props['classlist'], props['name'])


def page_with_nav(props):
    return html(
        (
            '\n<!DOCTYPE html>\n<html lang="en">\n<head>\n    <title>',
            '</title>\n</head>\n<body>\n    <ul id="navigation">\n    ',
            '\n    </ul>\n\n    <h1>My Webpage</h1>\n    ',
            '\n</body>\n</html>\n'),
        props['page_title'],
        [
            component(nav_item, NAV_ITEM_VARS)
            for __ in range(PAGE_WITH_NAV_NESTED_INSTANCE_COUNT)],
        props['page_content'])


def run_render_profile_simple(iteration_count: int = _ITERATION_COUNT):
    for __ in range(iteration_count):
        render_sync(nav_item, NAV_ITEM_VARS)


def run_render_profile_nested(iteration_count: int = _ITERATION_COUNT):
    for __ in range(iteration_count):
        render_sync(page_with_nav, PAGE_WITH_NAV_VARS)


if __name__ == '__main__':
    run_render_profile_simple()
    run_render_profile_nested()
