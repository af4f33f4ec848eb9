"""
Page scripts injected into the IDE web UI.

The selector knowledge lives here and nowhere else: transport code only sees
self-contained expressions that return plain JSON values. Bump
SCRIPT_VERSION whenever a selector list or a return shape changes.
"""
from __future__ import annotations

import json

SCRIPT_VERSION = 3

# ═══════════════════════════════════════════════════════════════════════════════
# Shared helpers
# ═══════════════════════════════════════════════════════════════════════════════

COMMON = '''
const CHAT_SCOPES = [
    '.jetski-chat-input',
    '.jetski-input',
    '.agent-chat-input',
    '.aichat-input',
    '.interactive-input-part',
    '.interactive-input-editor',
    '.chat-input-editor',
    '.chat-input',
    '.chat-widget',
    '.interactive-session',
    '#chat',
    '[class*="chat-input"]',
    '[class*="chat"]',
];

const INPUT_SELECTORS = [
    ...CHAT_SCOPES.map(s => s + ' [contenteditable="true"]'),
    ...CHAT_SCOPES.map(s => s + ' textarea'),
    '.interactive-input-editor .inputarea',
    '.chat-input-editor .inputarea',
    '.chat-widget .inputarea',
    '.interactive-session .inputarea',
    '[contenteditable="true"][role="textbox"]',
    'textarea',
    'input[type="text"]',
];

const isVisible = (el) => {
    if (!el || !el.getClientRects || el.getClientRects().length === 0) return false;
    const style = getComputedStyle(el);
    return style.display !== 'none' && style.visibility !== 'hidden';
};

const isTerminal = (el) =>
    el.classList.contains('xterm-helper-textarea') ||
    !!el.closest('.xterm, .terminal-wrapper, .terminal');

const findInput = () => {
    for (const selector of INPUT_SELECTORS) {
        const matches = [...document.querySelectorAll(selector)]
            .filter(el => isVisible(el) && !isTerminal(el));
        if (matches.length) return { el: matches[matches.length - 1], selector };
    }
    return null;
};

const chatRoot = (el) =>
    el.closest(CHAT_SCOPES.join(',')) || el.closest('form') ||
    (el.parentElement && el.parentElement.parentElement && el.parentElement.parentElement.parentElement) ||
    document;

const labelOf = (b) => [
    b.getAttribute('aria-label'),
    b.getAttribute('title'),
    b.getAttribute('class'),
    b.getAttribute('data-testid'),
    (b.querySelector('[class*="codicon"]') || {}).className,
].filter(Boolean).join(' ').toLowerCase();

const looksLikeSend = (b) =>
    /\\bsend\\b|submit|codicon-send|arrow-up|paper-plane/.test(labelOf(b));

const looksLikeStop = (b) =>
    /\\bstop\\b|cancel|codicon-debug-stop|codicon-stop/.test(labelOf(b));

const isEnabled = (b) =>
    !b.disabled && b.getAttribute('aria-disabled') !== 'true' && !b.classList.contains('disabled');

const controlsNear = (el) =>
    [...chatRoot(el).querySelectorAll('button, [role="button"], a.action-label')].filter(isVisible);
'''

# ═══════════════════════════════════════════════════════════════════════════════
# Injection
# ═══════════════════════════════════════════════════════════════════════════════

_INJECT_TEMPLATE = '''
(async () => {
    const text = __TEXT__;
    __COMMON__

    const setNativeValue = (el, value) => {
        try {
            const setter = Object.getOwnPropertyDescriptor(Object.getPrototypeOf(el), 'value')?.set;
            if (setter) setter.call(el, value);
            else el.value = value;
        } catch (e) { el.value = value; }
    };

    const readBack = (el) => (el.isContentEditable ? el.innerText : el.value) || '';

    const clear = (el) => {
        if (el.isContentEditable) {
            const range = document.createRange();
            range.selectNodeContents(el);
            const selection = window.getSelection();
            selection.removeAllRanges();
            selection.addRange(range);
            try { document.execCommand('delete'); } catch (e) {}
            if (readBack(el).trim()) el.textContent = '';
        } else {
            setNativeValue(el, '');
            el.dispatchEvent(new Event('input', { bubbles: true }));
        }
    };

    const insertNative = (el) => {
        try {
            if (typeof document.execCommand !== 'function') return false;
            const ok = document.execCommand('insertText', false, text);
            return !!ok && readBack(el).trim().length > 0;
        } catch (e) {
            return false;
        }
    };

    const insertFallback = (el) => {
        if (el.isContentEditable) el.textContent = text;
        else setNativeValue(el, text);
        el.dispatchEvent(new InputEvent('input', { bubbles: true, inputType: 'insertText', data: text }));
        el.dispatchEvent(new Event('change', { bubbles: true }));
    };

    const pressEnter = (el) => {
        ['keydown', 'keypress', 'keyup'].forEach(type => {
            el.dispatchEvent(new KeyboardEvent(type, {
                key: 'Enter', code: 'Enter', keyCode: 13, which: 13, bubbles: true, cancelable: true,
            }));
        });
    };

    const dumpInputs = () => [...document.querySelectorAll('textarea, input, [contenteditable="true"]')]
        .filter(isVisible)
        .slice(0, 10)
        .map(el => (el.getAttribute('class') || el.tagName.toLowerCase()) +
            ' | placeholder=' + (el.getAttribute('placeholder') || el.getAttribute('aria-label') || ''));

    const hit = findInput();
    if (!hit) {
        return { found: false, error: 'No chat input selector matched', inputs: dumpInputs() };
    }

    const el = hit.el;
    el.focus();
    clear(el);
    let insert = 'native';
    if (!insertNative(el)) {
        insert = 'fallback';
        insertFallback(el);
    }

    await new Promise(r => setTimeout(r, 150));

    const sendButton = controlsNear(el).filter(b => looksLikeSend(b) && isEnabled(b)).pop();
    let submit = 'enter';
    if (sendButton) {
        sendButton.click();
        submit = 'button';
    } else {
        pressEnter(el);
    }

    return { found: true, method: hit.selector, insert, submit, version: __VERSION__ };
})()
'''


def build_inject_script(text: str) -> str:
    """Inject script with ``text`` embedded as a JSON string literal."""
    return (
        _INJECT_TEMPLATE.replace("__COMMON__", COMMON)
        .replace("__VERSION__", str(SCRIPT_VERSION))
        .replace("__TEXT__", json.dumps(text))
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Completion probe
# ═══════════════════════════════════════════════════════════════════════════════

STATE_PROBE = '''
(() => {
    __COMMON__
    const hit = findInput();
    if (!hit) return { hasChat: false, isGenerating: false, isIdle: false };

    const input = hit.el;
    const controls = controlsNear(input);
    const hasStop = controls.some(looksLikeStop);
    const hasSend = controls.some(looksLikeSend);
    const inputDisabled = !!input.disabled ||
        input.getAttribute('aria-disabled') === 'true' ||
        input.getAttribute('contenteditable') === 'false';

    return {
        hasChat: true,
        isGenerating: hasStop,
        isIdle: !hasStop && !inputDisabled,
        hasSend,
        selector: hit.selector,
    };
})()
'''.replace("__COMMON__", COMMON)


# ═══════════════════════════════════════════════════════════════════════════════
# Screenshot region probe
# ═══════════════════════════════════════════════════════════════════════════════

REGION_PROBE = '''
(() => {
    __COMMON__
    const REGION_SELECTORS = [
        '.jetski-chat',
        '.agent-chat',
        '.aichat',
        '.interactive-session',
        '.chat-widget',
        '#chat',
        '[class*="chat-view"]',
        '[class*="chat-container"]',
        '.part.auxiliarybar',
    ];

    const box = (el) => {
        const r = el.getBoundingClientRect();
        return { x: r.left + window.scrollX, y: r.top + window.scrollY, width: r.width, height: r.height };
    };

    for (const selector of REGION_SELECTORS) {
        const el = [...document.querySelectorAll(selector)].find(isVisible);
        if (!el) continue;
        const chain = [];
        for (let node = el; node && node !== document.body && chain.length < 40; node = node.parentElement) {
            chain.push(box(node));
        }
        return { found: true, selector, chain, body: box(document.body) };
    }
    return { found: false, error: 'No chat container selector matched' };
})()
'''.replace("__COMMON__", COMMON)
